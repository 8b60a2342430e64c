"""Shared fixtures for site search index tests."""

from pathlib import Path
from typing import Any

import pytest

from site_search_index.config import Settings

LUNR_STORE = """var store = [{
        "title": "Order Tracking — First Steps into My Portfolio",
        "excerpt":"The first concrete project in my portfolio is an Order Tracking service. At its core, it’s simple: an API to create orders, update their status, and check where they are in the delivery process. But even a small project like this can already show the kind of engineering mindset I...","categories": ["portfolio","projects"],
        "tags": ["order-tracking","java","spring-boot","postgres","portfolio"],
        "url": "/blog/order-tracking-first-steps/",
        "teaser": null
      },{
        "title": "Welcome to the Blog: Building My Portfolio",
        "excerpt":"As a software engineer with more than nine years of experience — I’ve spent most of my career building scalable, high-volume data systems for e-commerce. Over time, I’ve realized something very clear: no matter how much you grow in the industry, having a personal portfolio is no longer optional. It’s...","categories": ["portfolio","personal","career"],
        "tags": ["software-engineering","portfolio","career-growth","blogging"],
        "url": "/blog/welcome-blog/",
        "teaser": null
      }]
"""


@pytest.fixture
def settings() -> Settings:
    """Create settings with defaults, ignoring the environment.

    Returns:
        Settings instance.
    """
    return Settings(_env_file=None)


@pytest.fixture
def sample_records() -> list[dict[str, Any]]:
    """Return the two blog post records published by the portfolio site.

    Returns:
        Raw content records.
    """
    return [
        {
            "title": "Order Tracking — First Steps into My Portfolio",
            "excerpt": (
                "The first concrete project in my portfolio is an Order Tracking service. At its core, "
                "it’s simple: an API to create orders, update their status, and check where they are "
                "in the delivery process. But even a small project like this can already show the kind "
                "of engineering mindset I..."
            ),
            "categories": ["portfolio", "projects"],
            "tags": ["order-tracking", "java", "spring-boot", "postgres", "portfolio"],
            "url": "/blog/order-tracking-first-steps/",
            "teaser": None,
        },
        {
            "title": "Welcome to the Blog: Building My Portfolio",
            "excerpt": (
                "As a software engineer with more than nine years of experience — I’ve spent most "
                "of my career building scalable, high-volume data systems for e-commerce. Over time, "
                "I’ve realized something very clear: no matter how much you grow in the industry, "
                "having a personal portfolio is no longer optional. It’s..."
            ),
            "categories": ["portfolio", "personal", "career"],
            "tags": ["software-engineering", "portfolio", "career-growth", "blogging"],
            "url": "/blog/welcome-blog/",
            "teaser": None,
        },
    ]


@pytest.fixture
def lunr_store_file(tmp_path: Path) -> Path:
    """Write the sample records as a lunr-store.js file.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        Path to the records file.
    """
    path = tmp_path / "lunr-store.js"
    path.write_text(LUNR_STORE, encoding="utf-8")
    return path
