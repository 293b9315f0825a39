# Бизнес-константы магазина

# Ограничения товара
MIN_PRODUCT_PRICE = 0  # цена строго больше
MAX_PRODUCT_PRICE = 10_000_000
MIN_STOCK = 0
MAX_STOCK = 100_000
MAX_PRODUCT_NAME_LENGTH = 100

# Ограничения скидочных уровней
MIN_TIER_QUANTITY = 1
MAX_TIER_QUANTITY = 1000

# Оптовая скидка
BULK_QUANTITY_THRESHOLD = 10
BULK_BONUS_RATE = 0.05
MAX_DISCOUNT_RATE = 0.5

# Купоны
MIN_ORDER_AMOUNT_FOR_PERCENTAGE = 10_000
MAX_PERCENTAGE_DISCOUNT = 100
COUPON_CODE_PATTERN = r"^[A-Z0-9]{4,12}$"

# Витрина
LOW_STOCK_THRESHOLD = 5

# Ключи хранилища
CART_KEY = "cart"
COUPONS_KEY = "coupons"
PRODUCTS_KEY = "products"
