"""Ядро: подписи, регистрация, сверка платежей, уведомления."""
