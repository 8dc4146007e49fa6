# init_db.py
# Create the visitor tracking tables in the database named by DATABASE_URL.
from visitrack.core.database import init_db

if __name__ == "__main__":
    init_db()
