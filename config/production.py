import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "gym_db"),
    "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

VNPAY = {
    "tmn_code": os.getenv("VNPAY_TMN_CODE", ""),
    "hash_secret": os.getenv("VNPAY_HASH_SECRET", ""),
    "base_url": os.getenv("VNPAY_BASE_URL", "https://pay.vnpay.vn/vpcpay.html"),
    "return_url": os.getenv("VNPAY_RETURN_URL", ""),
    "simulate": False,
}

COMMISSION = {}

WALKIN_PASS_PRICE = int(os.getenv("WALKIN_PASS_PRICE", "50000"))
DEFAULT_CLASS_PRICE = int(os.getenv("DEFAULT_CLASS_PRICE", "200000"))
