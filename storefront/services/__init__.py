# Storefront services
