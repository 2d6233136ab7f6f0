"""
One-off data seeding.

    python -m packages.features.seed countries
    python -m packages.features.seed tour
    python -m packages.features.seed reviews
    python -m packages.features.seed admin --email admin@example.com --password ...

Every command is idempotent: existing slugs / e-mails are left untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import click
from dotenv import load_dotenv
from rich.console import Console

from packages.features.countries.countries import COUNTRIES, SUBDOCS
from packages.features.reviews.reviews import CATEGORIES, REVIEWS
from packages.features.store import ROOT_DIR, new_id
from packages.features.tours.tours import TOURS
from packages.features.users.users import create_user, find_by_email

logger = logging.getLogger(__name__)

console = Console()

SCHENGEN = "Schengen visa required for most nationalities. EU citizens can enter visa-free."

SAMPLE_COUNTRIES: List[Dict[str, Any]] = [
    {
        "name": "France",
        "slug": "france",
        "description": (
            "Experience the romance and elegance of France, from the iconic Eiffel Tower in Paris "
            "to the lavender fields of Provence."
        ),
        "heroImages": [
            "https://images.unsplash.com/photo-1502602898657-3e91760cbb34?w=1920",
            "https://images.unsplash.com/photo-1511739001486-6bfe10ce785f?w=1920",
        ],
        "heroQuery": "paris france eiffel tower",
        "bestTime": "April to October",
        "currency": "EUR (€)",
        "language": "French",
        "visaInfo": SCHENGEN,
        "attractions": [
            {"title": "Eiffel Tower", "description": "The iconic iron lattice tower in the heart of Paris.", "displayOrder": 1},
            {"title": "Louvre Museum", "description": "Home to the Mona Lisa and Venus de Milo.", "displayOrder": 2},
            {"title": "French Riviera", "description": "Mediterranean coastline with Nice and Cannes.", "displayOrder": 3},
        ],
        "testimonials": [
            {"quote": "Our tour through France was absolutely magical!", "author": "Sarah Johnson, USA", "displayOrder": 1},
        ],
    },
    {
        "name": "Switzerland",
        "slug": "switzerland",
        "description": (
            "Alpine peaks, crystal lakes and storybook villages. Ride scenic trains through the Alps "
            "and explore Zurich, Lucerne and Interlaken."
        ),
        "heroImages": ["https://images.unsplash.com/photo-1530122037265-a5f1f91d3b99?w=1920"],
        "heroQuery": "swiss alps switzerland",
        "bestTime": "June to September, December to March",
        "currency": "CHF (Fr.)",
        "language": "German, French, Italian",
        "visaInfo": SCHENGEN,
        "attractions": [
            {"title": "Matterhorn", "description": "The famous pyramid-shaped peak above Zermatt.", "displayOrder": 1},
            {"title": "Lake Lucerne", "description": "A lake framed by mountains and medieval old town.", "displayOrder": 2},
        ],
        "testimonials": [
            {"quote": "The mountain views were beyond anything we imagined.", "author": "Maria Santos, Philippines", "displayOrder": 1},
        ],
    },
    {
        "name": "Italy",
        "slug": "italy",
        "description": (
            "Ancient Roman ruins meet Renaissance masterpieces. From the canals of Venice to the "
            "rolling hills of Tuscany."
        ),
        "heroImages": ["https://images.unsplash.com/photo-1523906834658-6e24ef2386f9?w=1920"],
        "heroQuery": "rome italy colosseum",
        "bestTime": "April to June, September to October",
        "currency": "EUR (€)",
        "language": "Italian",
        "visaInfo": SCHENGEN,
        "attractions": [
            {"title": "Colosseum", "description": "Ancient amphitheater of Imperial Rome.", "displayOrder": 1},
            {"title": "Venice Canals", "description": "Waterways winding through historic palaces.", "displayOrder": 2},
            {"title": "Florence Cathedral", "description": "Renaissance cathedral with Brunelleschi's dome.", "displayOrder": 3},
        ],
        "testimonials": [
            {"quote": "Rome, Florence and Venice in one trip. Perfectly paced.", "author": "Michael Chen, Singapore", "displayOrder": 1},
        ],
    },
]

SAMPLE_TOUR: Dict[str, Any] = {
    "slug": "route-a-preferred",
    "title": "Route A Preferred - European Adventure",
    "summary": "14-day journey through France, Switzerland, Italy, and Vatican City.",
    "line": "ROUTE_A",
    "durationDays": 14,
    "highlights": ["Paris", "Zurich", "Milan", "Florence", "Rome"],
    "images": ["/image.png"],
    "guaranteedDeparture": True,
    "regularPricePerPerson": 250000,
    "promoPricePerPerson": 160000,
    "allowsDownpayment": True,
    "published": True,
    "additionalInfo": {
        "countriesVisited": ["France", "Switzerland", "Italy", "Vatican City"],
        "startingPoint": "Manila, Philippines",
        "endingPoint": "Manila, Philippines",
    },
    "itinerary": [
        {"day": 1, "title": "Manila to Paris", "description": "Departure and arrival in Paris.", "activities": []},
        {"day": 2, "title": "Paris", "description": "City tour and Seine river cruise.", "activities": ["Eiffel Tower"]},
    ],
    "departureDates": [],
}

SAMPLE_REVIEWS: List[Dict[str, Any]] = [
    {
        "name": "Emma Thompson",
        "rating": 5,
        "comment": "An absolutely incredible journey through Europe! Every detail was perfectly planned.",
        "tourSlug": "mediterranean-grand-tour",
        "tourTitle": "Mediterranean Grand Tour",
        "createdAt": "2024-11-15T00:00:00Z",
    },
    {
        "name": "Michael Chen",
        "rating": 5,
        "comment": "Our guide was phenomenal, truly passionate and knowledgeable.",
        "tourSlug": "route-a-preferred",
        "tourTitle": "European Highlights Tour",
        "createdAt": "2024-11-20T00:00:00Z",
    },
    {
        "name": "Isabella Rodriguez",
        "rating": 4,
        "comment": "The accommodations were stunning and the itinerary was perfectly paced.",
        "tourSlug": "route-b-classic",
        "tourTitle": "Classic Europe Experience",
        "createdAt": "2024-11-25T00:00:00Z",
    },
]


def seed_countries() -> int:
    def _seed(items: List[Dict[str, Any]]) -> int:
        slugs = {str(c.get("slug")) for c in items}
        added = 0
        for sample in SAMPLE_COUNTRIES:
            if sample["slug"] in slugs:
                continue
            doc = {**sample, "heroImageUrl": sample["heroImages"][0], "isActive": True}
            for key, (prefix, _) in SUBDOCS.items():
                doc[key] = [{**s, "id": new_id(prefix)} for s in sample.get(key) or []]
            items.append(COUNTRIES.stamp_new(doc))
            added += 1
        return added

    return COUNTRIES.mutate(_seed)


def seed_tour() -> int:
    def _seed(items: List[Dict[str, Any]]) -> int:
        if any(str(t.get("slug")) == SAMPLE_TOUR["slug"] for t in items):
            return 0
        items.append(TOURS.stamp_new(dict(SAMPLE_TOUR)))
        return 1

    return TOURS.mutate(_seed)


def seed_reviews() -> int:
    def _seed(items: List[Dict[str, Any]]) -> int:
        seen = {(r.get("name"), r.get("tourSlug")) for r in items}
        added = 0
        for sample in SAMPLE_REVIEWS:
            if (sample["name"], sample["tourSlug"]) in seen:
                continue
            doc = {
                **sample,
                "categories": {c: sample["rating"] for c in CATEGORIES},
                "photos": [],
                "isApproved": True,
                "isVerifiedBooking": False,
                "helpfulVotes": 0,
            }
            items.append(REVIEWS.stamp_new(doc))
            added += 1
        return added

    return REVIEWS.mutate(_seed)


def seed_admin(email: str, password: str, full_name: str = "Administrator") -> bool:
    if find_by_email(email):
        return False
    create_user(email, password, full_name, role="admin")
    return True


@click.group()
def cli():
    """Seed the JSON data store."""
    load_dotenv(dotenv_path=ROOT_DIR / ".env")


@cli.command()
def countries():
    """Seed sample countries (France, Switzerland, Italy)."""
    console.print(f"[green]Added {seed_countries()} countries[/green]")


@cli.command()
def tour():
    """Seed the route-a-preferred tour."""
    added = seed_tour()
    console.print("[green]Seeded route-a-preferred[/green]" if added else "[yellow]Tour already exists[/yellow]")


@cli.command()
def reviews():
    """Seed approved sample reviews."""
    console.print(f"[green]Added {seed_reviews()} reviews[/green]")


@cli.command()
@click.option("--email", required=True, help="Admin e-mail address.")
@click.option("--password", required=True, prompt=True, hide_input=True, help="Admin password.")
@click.option("--name", "full_name", default="Administrator", help="Display name.")
def admin(email: str, password: str, full_name: str):
    """Create an admin user."""
    if seed_admin(email, password, full_name):
        console.print(f"[green]Created admin {email}[/green]")
    else:
        console.print(f"[yellow]{email} already exists[/yellow]")


if __name__ == "__main__":
    cli()
