"""BetHub: ядро интеграций с партнёрами и сверки платежей."""
