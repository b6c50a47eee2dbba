"""Services package - Business logic layer for Kitchen Back Office.

Architecture:
- Services: Stateless functions organized by domain
- Transactions: Managed via session_scope() context manager
- Organization scoping: Every query is filtered by identity.resolve_organization_id()
- Exceptions: Consistent error handling via ServiceError hierarchy

Service Modules:
- food_taxonomy_service: Major group / category / sub-category hierarchy
- master_ingredient_service: Master ingredient catalog
- prepared_item_service: Prepared item catalog
- inventory_service: Inventory counts
- recipe_cost_service: Recipe cost computation
- recipe_versioning: Version bump policy
- recipe_service: Recipe persistence
- import_normalization / import_service: Spreadsheet import

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- identity: Current user / organization resolution
- app_state: Explicit editor state object
"""
