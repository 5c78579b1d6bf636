import os
import sys
from dotenv import load_dotenv

# Load env vars
load_dotenv()

# --- PATH FIX ---
# Get the path to the project root (one level up from 'scripts')
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(project_root)

from sqlmodel import Session, select
from primavera.agent import agent, AssistantDeps
from primavera.config import get_settings
from primavera.models import Customer
from primavera.search import get_menu_index
from primavera.utils.db import engine


if __name__ == "__main__":
    settings = get_settings()
    if not settings.google_api_key:
        print("❌ Warning: GOOGLE_API_KEY not found in .env file!")

    print("--- 🍕 Prima Vera Assistant CLI Debugger ---")
    with Session(engine) as session:
        # Pick the first customer just to impersonate
        customer = session.exec(select(Customer)).first()

        if not customer:
            print("❌ Error: No customers found. Place an order while signed in first.")
            sys.exit(1)

        print(f"👤 Logged in as: {customer.first_name} {customer.last_name} (ID: {customer.id})")
        print("---------------------------------")

        while True:
            user_input = input("You: ")
            if user_input.lower() in ["quit", "exit"]:
                break

            deps = AssistantDeps(customer_id=customer.id, db=session, menu_index=get_menu_index())
            try:
                # Synchronous run for CLI testing
                result = agent.run_sync(user_input, deps=deps, model=settings.assistant_model)
                print(f"🤖 Assistant: {result.output}\n")
            except Exception as e:
                print(f"❌ Error: {e}")
