"""
Root-level conftest for all tests.

Settings are read from the environment the first time the application is
imported, so database values must exist before any aether module loads.
"""
import os

for key, value in {
    "POSTGRES_USER": "unit_test_user",
    "POSTGRES_HOST": "localhost",
    "POSTGRES_PASSWORD": "unit_test_password",
    "POSTGRES_PORT": "5432",
    "POSTGRES_DB": "unit_test_db",
}.items():
    if not os.getenv(key):
        os.environ[key] = value
