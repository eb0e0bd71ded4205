"""Seed users and catalog loaded at startup."""

from decimal import Decimal

from .models import Product, User


def seed_users() -> list[User]:
    """Return fresh copies of the seed accounts."""
    return [
        User(id="1", name="Daniel Silva", email="daniel@example.com", age=28),
        User(id="2", name="João Santos", email="joao@example.com", age=35),
        User(id="3", name="Maria Oliveira", email="maria@example.com", age=22),
        User(id="4", name="Ana Costa", email="ana@example.com", age=30),
        User(id="5", name="Carlos Ferreira", email="carlos@example.com", age=40),
    ]


def seed_products() -> list[Product]:
    """Return fresh copies of the seed catalog."""
    return [
        Product("1", "iPhone 15 Pro", "smartphone", Decimal("4999.99"), 50,
                "Latest iPhone with advanced camera", 4.8),
        Product("2", "MacBook Pro M3", "laptop", Decimal("8999.99"), 30,
                "Professional laptop for developers", 4.9),
        Product("3", "AirPods Pro", "headphone", Decimal("1299.99"), 100,
                "Wireless earbuds with noise cancellation", 4.7),
        Product("4", "Sony A7R V", "camera", Decimal("15999.99"), 15,
                "Professional mirrorless camera", 4.6),
        Product("5", 'Samsung OLED 65"', "tv", Decimal("6999.99"), 25,
                "4K OLED Smart TV", 4.5),
        Product("6", "Apple Watch Series 9", "watch", Decimal("2299.99"), 75,
                "Advanced smartwatch with health monitoring", 4.7),
        Product("7", 'iPad Pro 12.9"', "tablet", Decimal("5499.99"), 40,
                "Professional tablet for creative work", 4.8),
        Product("8", "JBL Flip 6", "speaker", Decimal("699.99"), 80,
                "Portable Bluetooth speaker", 4.4),
        Product("9", 'Dell UltraSharp 27"', "monitor", Decimal("2199.99"), 35,
                "4K professional monitor", 4.6),
        Product("10", "Logitech MX Master 3", "keyboard", Decimal("499.99"), 60,
                "Wireless productivity mouse", 4.5),
    ]
