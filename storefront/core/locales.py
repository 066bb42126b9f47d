# storefront/core/locales.py

# Сообщения об ошибках
ERROR_PRODUCT_NOT_FOUND = "Product not found."
ERROR_PRODUCT_UNAVAILABLE = "This product is currently unavailable."
ERROR_SELECT_ALL_OPTIONS = "Please select all options."
ERROR_COMBINATION_NOT_AVAILABLE = "This combination is not available."
ERROR_COMBINATION_OUT_OF_STOCK = "This combination is currently out of stock."
ERROR_NO_VARIANT_SELECTED = "Please select a variant."
ERROR_VARIANT_OUT_OF_STOCK = "This variant is out of stock."
ERROR_INVALID_QUANTITY = "Quantity must be between 1 and {max_quantity}."
ERROR_NOT_ENOUGH_STOCK = "Not enough stock. Available: {available_quantity}."
ERROR_UNKNOWN_OPTION = "Unknown option '{dimension}'."
ERROR_UNKNOWN_OPTION_VALUE = "Unknown value '{value}' for option '{dimension}'."
ERROR_ITEM_NOT_IN_CART = "Item not found in cart."
ERROR_CART_EMPTY = "Your cart is empty."
ERROR_CART_UNAVAILABLE = "Could not update your cart. Please try again."
ERROR_SESSION_REQUIRED = "X-Session-ID header is required."
ERROR_UPSTREAM_UNAVAILABLE = "The store is temporarily unavailable. Please try again later."
ERROR_FUNDRAISER_NOT_FOUND = "Fundraiser not found."
ERROR_FUNDRAISER_CLOSED = "This fundraiser is not accepting orders."
ERROR_QUANTITY_OUT_OF_RANGE = "Quantity for '{name}' must be between {min_quantity} and {max_quantity}."
ERROR_CART_ITEM_UNAVAILABLE = "'{name}' is no longer available."
ERROR_CART_ITEM_OUT_OF_STOCK = "'{name}' is out of stock."
ERROR_CART_ITEM_QUANTITY_REDUCED = "Only {available} of '{name}' available (requested {requested})."
ERROR_CART_HAS_ISSUES = "Some items in your cart are no longer available: {details}"
ERROR_PARTICIPANT_NOT_FOUND = "Participant not found for this fundraiser."
ERROR_FUNDRAISER_ITEM_NOT_FOUND = "This item is not part of the fundraiser."
ERROR_ORDER_FAILED = "Could not place the order. Please try again."

# Сообщения об успехе
SUCCESS_ADDED_TO_CART = "Added to cart!"

# Подписи на карточке варианта
LABEL_LOW_STOCK = "Only {stock_quantity} left"
LABEL_OUT_OF_STOCK = "Out of stock"
