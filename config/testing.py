import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "gym_db_test"),
    "pool_size": 0,
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

VNPAY = {
    "tmn_code": "TEST0001",
    "hash_secret": "test-secret",
    "base_url": "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html",
    "return_url": "http://localhost/payments/vnpay/return",
    "simulate": True,
}

COMMISSION = {}

WALKIN_PASS_PRICE = 50000
DEFAULT_CLASS_PRICE = 200000
