# Telegram storefront service
