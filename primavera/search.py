# primavera/search.py

"""
Menu search.

With a Google API key the menu is embedded (google-genai) into a local Qdrant
collection and searched by meaning: "something spicy", "no meat", ...
Without one we fall back to a plain text match on name, description and category.
"""

import logging
from functools import lru_cache
from typing import Callable, Iterable, List, Optional, Tuple

from google import genai
from qdrant_client import QdrantClient
from qdrant_client.models import Distance, PointStruct, VectorParams
from sqlalchemy import or_
from sqlmodel import Session, select

from primavera.config import get_settings
from primavera.errors import ValidationError
from primavera.models import Product

logger = logging.getLogger(__name__)

COLLECTION_NAME = "menu_products"
MIN_SCORE = 0.4

Embedder = Callable[[str], List[float]]


def product_text(product: Product) -> str:
    ingredients = ", ".join(product.ingredients or [])
    return (
        f"Product: {product.name}. Category: {product.category}. "
        f"Description: {product.description or ''}. Ingredients: {ingredients}"
    )


def genai_embedder(api_key: str, model: str) -> Embedder:
    client = genai.Client(api_key=api_key)

    def embed(text: str) -> List[float]:
        response = client.models.embed_content(model=model, contents=text)
        # The SDK returns an object, we access .embeddings[0].values
        return list(response.embeddings[0].values)

    return embed


class MenuIndex:
    """A Qdrant collection holding one vector per menu product."""

    def __init__(self, client: QdrantClient, embed: Embedder, collection_name: str = COLLECTION_NAME):
        self.client = client
        self.embed = embed
        self.collection_name = collection_name

    def is_ready(self) -> bool:
        return self.client.collection_exists(self.collection_name)

    def rebuild(self, products: Iterable[Product]) -> int:
        points = []
        for product in products:
            points.append(
                PointStruct(
                    id=product.id,
                    vector=self.embed(product_text(product)),
                    payload={
                        "name": product.name,
                        "price": str(product.price),
                        "category": product.category,
                        "description": product.description,
                    },
                )
            )

        # Reset Collection
        if self.client.collection_exists(self.collection_name):
            self.client.delete_collection(self.collection_name)
        if not points:
            return 0

        self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=VectorParams(size=len(points[0].vector), distance=Distance.COSINE),
        )
        self.client.upsert(collection_name=self.collection_name, points=points)
        logger.info("Indexed %d menu products into '%s'", len(points), self.collection_name)
        return len(points)

    def search(self, query: str, limit: int = 5) -> List[Tuple[int, float]]:
        response = self.client.query_points(
            collection_name=self.collection_name,
            query=self.embed(query),
            limit=limit,
        )
        return [(int(hit.id), hit.score) for hit in response.points if hit.score > MIN_SCORE]


@lru_cache
def get_menu_index() -> Optional[MenuIndex]:
    """The shared index, or None when no embedding client is configured."""
    settings = get_settings()
    if not settings.google_api_key:
        return None
    embed = genai_embedder(settings.google_api_key, settings.embedding_model)
    return MenuIndex(QdrantClient(path=settings.qdrant_path), embed)


def text_search(session: Session, query: str, limit: int = 5) -> List[Product]:
    pattern = f"%{query}%"
    statement = (
        select(Product)
        .where(
            Product.available == True,  # noqa: E712
            or_(
                Product.name.ilike(pattern),
                Product.description.ilike(pattern),
                Product.category.ilike(pattern),
            ),
        )
        .order_by(Product.sort_order.asc(), Product.name.asc())
        .limit(limit)
    )
    return list(session.exec(statement).all())


def search_menu(
    session: Session, query: str, limit: int = 5, index: Optional[MenuIndex] = None
) -> List[Tuple[Product, Optional[float]]]:
    query = query.strip()
    if not query:
        raise ValidationError("Search query must not be empty")

    if index is None or not index.is_ready():
        return [(product, None) for product in text_search(session, query, limit)]

    # Ask for extra hits: some may have been switched off since the last indexing
    hits = index.search(query, limit=limit * 2)
    if not hits:
        return []
    products = {
        p.id: p
        for p in session.exec(
            select(Product).where(
                Product.id.in_([product_id for product_id, _ in hits]),
                Product.available == True,  # noqa: E712
            )
        ).all()
    }
    results = [(products[product_id], score) for product_id, score in hits if product_id in products]
    return results[:limit]
