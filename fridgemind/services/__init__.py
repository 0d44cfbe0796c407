# Services package init
"""
FridgeMind API — Services Layer
=================================

What:  Business logic between the routes (HTTP) and the database / upstream APIs.
How:   Routes validate transport concerns and hand typed requests to a
       service singleton; services return response schemas or raise
       FridgeMindError subclasses.

Service Inventory:
    - LLMService (abstract): Interface for every AI task
    - GeminiService: Google Gemini implementation with retries and a circuit breaker
    - ScanService: Fridge/freezer/pantry photo → dated item list
    - EatingOutService: Restaurant meal logging with nutrition estimates
    - ReceiptService: Receipt parsing, listing with summary, deletion
    - ShoppingListService: bulk-add, meal → list, substitutes
    - NutritionService / FatSecretClient: Food lookup and search
    - StorageService: Meal photo upload, delete and serving
    - AuthService: Resolves bearer tokens to users
"""
