"""Category-keyed editorial guidance and placeholder imagery."""

from __future__ import annotations

CATEGORY_GUIDANCE = {
    "news": "Politics, society and current events with national or international relevance.",
    "politics": "Government decisions, elections, legislation and their concrete consequences.",
    "technology": "Product launches, AI, software, security incidents and the tech industry.",
    "finance": "Markets, interest rates, personal finance, companies and the economy.",
    "business": "Companies, industries, management decisions and the labour market.",
    "health": "Medical research, public health, nutrition, fitness and wellbeing.",
    "lifestyle": "Trends in fashion, home, travel, relationships and everyday life.",
    "sports": "Results, transfers, tournaments and the stories behind major competitions.",
    "entertainment": "Film, series, streaming, music, gaming and celebrity culture.",
    "food": "Seasonal cooking, recipes, restaurants and food trends.",
    "travel": "Destinations, travel tips, transport and tourism news.",
    "science": "New studies, discoveries, space and climate research.",
}

_GENERIC_GUIDANCE = "Timely, relevant stories for a general news audience."

PLACEHOLDER_IMAGES = {
    "news": "https://images.unsplash.com/photo-1495020689067-958852a7765e?w=800&h=450&fit=crop",
    "lifestyle": "https://images.unsplash.com/photo-1441986300917-64674bd600d8?w=800&h=450&fit=crop",
    "technology": "https://images.unsplash.com/photo-1518770660439-4636190af475?w=800&h=450&fit=crop",
    "sports": "https://images.unsplash.com/photo-1461896836934-28e4e59a8a13?w=800&h=450&fit=crop",
    "health": "https://images.unsplash.com/photo-1498837167922-ddd27525d352?w=800&h=450&fit=crop",
    "finance": "https://images.unsplash.com/photo-1579621970563-ebec7560ff3e?w=800&h=450&fit=crop",
    "entertainment": "https://images.unsplash.com/photo-1489599849927-2ee91cede3ba?w=800&h=450&fit=crop",
}

LANGUAGE_NAMES = {
    "de": "German",
    "en": "English",
    "fr": "French",
    "es": "Spanish",
}


def guidance_for(category: str) -> str:
    return CATEGORY_GUIDANCE.get(category.lower(), _GENERIC_GUIDANCE)


def placeholder_image(category: str) -> str:
    """Deterministic fallback thumbnail; unknown categories use the news image."""
    return PLACEHOLDER_IMAGES.get(category.lower(), PLACEHOLDER_IMAGES["news"])


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)
