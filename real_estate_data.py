"""
Rental Listings Seed Data
Default properties written to the property store on first run, plus brand details
"""

BRAND_INFO = {
    "name": "Rentify",
    "about": "Rentify helps tenants find quality rental homes across Gauteng.",
    "currency_symbol": "R",
}

DEFAULT_PROPERTIES = [
    {
        "id": 1,
        "title": "Luxury Executive Suite",
        "price": 1200,
        "location": "Sandton, South Africa",
        "bedrooms": 2,
        "bathrooms": 2,
        "square_feet": 1200,
        "description": "Modern 2-bedroom apartment with premium amenities in prime location",
        "images": [
            "IMAGES/Westpoint_Sandton_Executive_Suites.webp",
            "IMAGES/Marley_on_Katherine_Apartments.webp"
        ],
        "available": True,
        "featured": True,
        "amenities": ["WiFi", "Gym", "Pool", "Parking"],
        "address": {},
        "created_at": "2024-01-01T00:00:00",
        "updated_at": "2024-01-01T00:00:00"
    },
    {
        "id": 2,
        "title": "Modern Loft Apartment",
        "price": 950,
        "location": "Bedfordview, South Africa",
        "bedrooms": 1,
        "bathrooms": 1,
        "square_feet": 850,
        "description": "Stylish loft with spa access and contemporary design features",
        "images": ["IMAGES/Lilian_Lofts_Hotel_Spa.webp"],
        "available": True,
        "featured": False,
        "amenities": ["WiFi", "Spa", "Kitchen", "Laundry"],
        "address": {},
        "created_at": "2024-01-02T00:00:00",
        "updated_at": "2024-01-02T00:00:00"
    },
    {
        "id": 3,
        "title": "Convention Center Apartment",
        "price": 1500,
        "location": "O.R. Tambo, South Africa",
        "bedrooms": 3,
        "bathrooms": 2,
        "square_feet": 1500,
        "description": "Luxury accommodation near airport with business facilities",
        "images": ["IMAGES/Radisson_Hotel_and_Convention_Centre_OR_Tambo_Airp.webp"],
        "available": True,
        "featured": False,
        "amenities": ["WiFi", "Business Center", "Airport Shuttle", "Restaurant"],
        "address": {},
        "created_at": "2024-01-03T00:00:00",
        "updated_at": "2024-01-03T00:00:00"
    }
]
