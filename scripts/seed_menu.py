import os
import sys
from decimal import Decimal

from dotenv import load_dotenv
from sqlmodel import Session, select

# --- PATH SETUP ---
current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(current_dir)
sys.path.append(project_root)

from primavera.models import Product
from primavera.utils.db import engine, init_db

load_dotenv()

# Prima Vera's menu
PIZZAS = [
    ("Margherita", "Klasická talianska pizza s čerstvými paradajkami a mozzarellou",
     ["paradajková omáčka", "mozzarella", "bazalka", "olivový olej"], "8.90"),
    ("Quattro Formaggi", "Štvorité potešenie pre milovníkov syrov",
     ["mozzarella", "gorgonzola", "parmezán", "ementál"], "11.90"),
    ("Prosciutto e Funghi", "Šunka a čerstvé šampiňóny",
     ["paradajková omáčka", "mozzarella", "šunka", "šampiňóny"], "10.90"),
    ("Diavola", "Pre milovníkov pikantnej chuti",
     ["paradajková omáčka", "mozzarella", "pikantná saláma", "feferónky", "olivy"], "11.50"),
    ("Capricciosa", "Tradičná pizza s bohatou náplňou",
     ["paradajková omáčka", "mozzarella", "šunka", "šampiňóny", "artičoky", "olivy"], "12.50"),
    ("Vegetariana", "Čerstvá zelenina pre vegetariánov",
     ["paradajková omáčka", "mozzarella", "paprika", "cuketa", "baklažán", "cherry paradajky"], "10.90"),
    ("Tonno", "S kvalitným tuniakom a cibuľou",
     ["paradajková omáčka", "mozzarella", "tuniak", "červená cibuľa", "kapary"], "11.90"),
    ("Hawaii", "Sladko-slaná kombinácia",
     ["paradajková omáčka", "mozzarella", "šunka", "ananás"], "10.50"),
    ("Pepperoni", "Americká klasika s pepperoni",
     ["paradajková omáčka", "mozzarella", "pepperoni"], "10.90"),
]

DRINKS = [
    ("Coca-Cola 0.5L", "Osviežujúci nápoj", [], "2.50"),
    ("Fanta 0.5L", "Pomarančový nápoj", [], "2.50"),
    ("Sprite 0.5L", "Citrónový nápoj", [], "2.50"),
    ("Minerálna voda 0.5L", "Prírodná minerálna voda", [], "1.90"),
]

SIDES = [
    ("Cesnak s maslom", "Čerstvý cesnakový chlieb s maslom", ["chlieb", "cesnak", "maslo", "bylinky"], "3.50"),
    ("Hranolky", "Chrumkavé zemiakové hranolky", ["zemiaky", "soľ"], "3.90"),
]


def menu_products():
    for category, items in (("pizza", PIZZAS), ("drink", DRINKS), ("side", SIDES)):
        for position, (name, description, ingredients, price) in enumerate(items, start=1):
            yield Product(
                name=name,
                description=description,
                ingredients=ingredients,
                price=Decimal(price),
                category=category,
                sort_order=position,
                available=True,
            )


def main():
    print("🍕 Seeding Prima Vera menu...")
    init_db()

    with Session(engine) as session:
        # Orders keep pointing at their products, so never wipe an existing menu
        if session.exec(select(Product)).first():
            print("ℹ️  Menu already seeded, nothing to do.")
            return

        products = list(menu_products())
        for product in products:
            session.add(product)
            print(f"  ✅ Added: {product.name}")
        session.commit()

    print(f"\n🎉 Seeded {len(products)} products successfully!")


if __name__ == "__main__":
    main()
