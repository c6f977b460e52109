"""
Canteen database upgrades.

Each module holds one upgrade: a Migration class that inherits from
MigrationUnit and describes the change from one schema version to the next.
Importing a module only defines the class; the runner decides what executes.

Naming convention: vXXX_description.py, where XXX is the source version
(e.g., v100_add_page_cache.py upgrades v100 to v101).
"""
