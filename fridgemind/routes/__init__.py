# Routes package init
"""
FridgeMind API — API Routes Package
=====================================

Route Inventory:
    - scan.py:          POST   /api/scan
    - eating_out.py:    POST   /api/eating-out
                        GET    /api/eating-out
    - receipts.py:      POST   /api/receipts
                        GET    /api/receipts
                        DELETE /api/receipts?id=
                        GET    /api/receipts/{id}/items
    - fatsecret.py:     GET    /api/fatsecret/food
                        GET    /api/fatsecret/search
    - shopping_list.py: POST   /api/shopping-list/bulk-add
                        POST   /api/shopping-list/from-meal
                        POST   /api/shopping-list/suggest-alternative
    - storage.py:       GET    /storage/meal-photos/{path}
    - health.py:        GET    /health

Every /api route depends on get_current_user; routes stay thin and delegate
to the services package.
"""
