import os
import sys

from dotenv import load_dotenv
from sqlmodel import Session

# --- PATH SETUP ---
current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(current_dir)
sys.path.append(project_root)

from primavera.search import get_menu_index
from primavera.services.catalog import list_products
from primavera.utils.db import engine

# 1. Setup
load_dotenv()


def main():
    index = get_menu_index()
    if index is None:
        print("❌ Error: GOOGLE_API_KEY not found.")
        sys.exit(1)

    print("--- 🧠 Semantic Indexing (Powered by google-genai SDK) ---")

    with Session(engine) as session:
        # Only what customers can order ends up in the index
        products = list_products(session)
        for product in products:
            print(f"   🔹 Embedding: {product.name}")
        count = index.rebuild(products)

    print(f"✅ Indexed {count} products.")


if __name__ == "__main__":
    main()
