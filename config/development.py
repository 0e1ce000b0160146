import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "gym_db"),
    "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# VNPay sandbox. With simulate on, /payments/<id>/vnpay/simulate signs a fake return.
VNPAY = {
    "tmn_code": os.getenv("VNPAY_TMN_CODE", "DEMO0001"),
    "hash_secret": os.getenv("VNPAY_HASH_SECRET", "dev-vnpay-secret"),
    "base_url": os.getenv("VNPAY_BASE_URL", "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html"),
    "return_url": os.getenv("VNPAY_RETURN_URL", "http://localhost:5000/payments/vnpay/return"),
    "simulate": bool(int(os.getenv("VNPAY_SIMULATE", "1"))),
}

# Overrides for salary.config.CommissionConfig; missing keys keep the defaults.
COMMISSION = {}

WALKIN_PASS_PRICE = int(os.getenv("WALKIN_PASS_PRICE", "50000"))
DEFAULT_CLASS_PRICE = int(os.getenv("DEFAULT_CLASS_PRICE", "200000"))
