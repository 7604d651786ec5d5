"""
Sample catalog inserted when the restaurants table is empty.
"""

SAMPLE_RESTAURANTS = [
    {
        "name": "The Golden Spoon",
        "location": "Downtown Manhattan, New York",
        "description": "Elegant fine dining with contemporary American cuisine and exceptional service.",
        "image_url": "https://images.unsplash.com/photo-1517248135467-4c7edcad34c4?w=500",
        "rating": 4.8,
        "price_range": "$$$",
        "cuisine_type": "American",
    },
    {
        "name": "Sakura Sushi",
        "location": "Little Tokyo, Los Angeles",
        "description": "Authentic Japanese sushi bar with fresh fish flown in daily from Tokyo.",
        "image_url": "https://images.unsplash.com/photo-1579584425555-c3ce17fd4351?w=500",
        "rating": 4.6,
        "price_range": "$$",
        "cuisine_type": "Japanese",
    },
    {
        "name": "Mama Mia Pizzeria",
        "location": "North End, Boston",
        "description": "Traditional Italian pizzeria with wood-fired ovens and homemade pasta.",
        "image_url": "https://images.unsplash.com/photo-1555396273-367ea4eb4db5?w=500",
        "rating": 4.4,
        "price_range": "$",
        "cuisine_type": "Italian",
    },
    {
        "name": "Le Jardin",
        "location": "French Quarter, New Orleans",
        "description": "Romantic French bistro with garden seating and live jazz music.",
        "image_url": "https://images.unsplash.com/photo-1414235077428-338989a2e8c0?w=500",
        "rating": 4.7,
        "price_range": "$$$",
        "cuisine_type": "French",
    },
    {
        "name": "Spice Route",
        "location": "Curry Hill, New York",
        "description": "Authentic Indian cuisine with traditional spices and vegetarian options.",
        "image_url": "https://images.unsplash.com/photo-1585937421612-70a008356fbe?w=500",
        "rating": 4.3,
        "price_range": "$$",
        "cuisine_type": "Indian",
    },
    {
        "name": "Ocean Breeze",
        "location": "Santa Monica, California",
        "description": "Fresh seafood restaurant with ocean views and sustainable catches.",
        "image_url": "https://images.unsplash.com/photo-1559339352-11d035aa65de?w=500",
        "rating": 4.5,
        "price_range": "$$$",
        "cuisine_type": "Seafood",
    },
]
