# Storefront
