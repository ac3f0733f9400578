"""
categories.py

Curated lookup tables used to normalise raw bank transactions into a small,
fixed set of spending categories.  The tables are static configuration:
they are built once at import time as immutable structures and are never
modified at runtime.

``MERCHANT_CATEGORIES`` is an ordered sequence rather than a mapping.  A
transaction is matched against the keys in order and the first key that
occurs as a substring wins, so ordering decides between overlapping keys.
For example "Uber Eats" hits ``uber`` (Transportation) before it can reach
``ubereats`` (Food & Dining); that ordering is kept as-is.
"""

import re
from types import MappingProxyType

OTHER = "Other"

# (merchant fragment, category); lower-case fragments, matched in order.
MERCHANT_CATEGORIES = (
    # Transportation
    ("uber", "Transportation"),
    ("lyft", "Transportation"),
    ("grab", "Transportation"),
    ("bolt", "Transportation"),
    ("ola", "Transportation"),
    ("citymapper", "Transportation"),
    ("lime", "Transportation"),
    ("bird", "Transportation"),
    ("zipcar", "Transportation"),
    ("hertz", "Transportation"),
    ("enterprise", "Transportation"),
    ("shell", "Transportation"),
    ("bp", "Transportation"),
    ("exxon", "Transportation"),
    ("chevron", "Transportation"),
    ("mobil", "Transportation"),
    ("esso", "Transportation"),
    ("texaco", "Transportation"),
    ("metro", "Transportation"),
    ("mta", "Transportation"),
    ("tfl", "Transportation"),

    # Food & Dining
    ("mcdonalds", "Food & Dining"),
    ("starbucks", "Food & Dining"),
    ("dominos", "Food & Dining"),
    ("pizza hut", "Food & Dining"),
    ("kfc", "Food & Dining"),
    ("subway", "Food & Dining"),
    ("chipotle", "Food & Dining"),
    ("panera", "Food & Dining"),
    ("dunkin", "Food & Dining"),
    ("taco bell", "Food & Dining"),
    ("wendys", "Food & Dining"),
    ("burger king", "Food & Dining"),
    ("deliveroo", "Food & Dining"),
    ("just eat", "Food & Dining"),
    ("grubhub", "Food & Dining"),
    ("doordash", "Food & Dining"),
    ("ubereats", "Food & Dining"),
    ("postmates", "Food & Dining"),
    ("seamless", "Food & Dining"),
    ("instacart", "Food & Dining"),
    ("whole foods", "Food & Dining"),
    ("trader joes", "Food & Dining"),
    ("safeway", "Food & Dining"),
    ("kroger", "Food & Dining"),
    ("publix", "Food & Dining"),

    # Big-box retail
    ("walmart", "Shopping"),
    ("target", "Shopping"),
    ("costco", "Shopping"),
    ("sams club", "Shopping"),

    # Entertainment
    ("netflix", "Entertainment"),
    ("spotify", "Entertainment"),
    ("apple music", "Entertainment"),
    ("amazon prime", "Entertainment"),
    ("disney", "Entertainment"),
    ("hulu", "Entertainment"),
    ("hbo", "Entertainment"),
    ("youtube", "Entertainment"),
    ("twitch", "Entertainment"),
    ("steam", "Entertainment"),
    ("playstation", "Entertainment"),
    ("xbox", "Entertainment"),
    ("nintendo", "Entertainment"),
    ("cinema", "Entertainment"),
    ("theater", "Entertainment"),
    ("gym", "Entertainment"),
    ("fitness", "Entertainment"),

    # Shopping
    ("amazon", "Shopping"),
    ("ebay", "Shopping"),
    ("etsy", "Shopping"),
    ("best buy", "Shopping"),
    ("apple store", "Shopping"),
    ("microsoft store", "Shopping"),
    ("nike", "Shopping"),
    ("adidas", "Shopping"),
    ("zara", "Shopping"),
    ("h&m", "Shopping"),
    ("uniqlo", "Shopping"),
    ("macys", "Shopping"),
    ("nordstrom", "Shopping"),
    ("sephora", "Shopping"),
    ("ulta", "Shopping"),

    # Utilities
    ("verizon", "Utilities"),
    ("att", "Utilities"),
    ("t-mobile", "Utilities"),
    ("sprint", "Utilities"),
    ("comcast", "Utilities"),
    ("spectrum", "Utilities"),
    ("cox", "Utilities"),
    ("directv", "Utilities"),
    ("dish", "Utilities"),
)

# Aggregator-supplied category names (any level of the hierarchy) -> category.
HIERARCHY_CATEGORIES = MappingProxyType({
    # Primary categories
    "Food and Drink": "Food & Dining",
    "Shops": "Shopping",
    "Recreation": "Entertainment",
    "Transportation": "Transportation",
    "Healthcare": "Healthcare",
    "Service": "Services",
    "Bank Fees": "Fees",
    "Cash Advance": "Cash",
    "Interest": "Interest",
    "Payment": "Payment",
    "Deposit": "Income",
    "Transfer": "Transfer",
    "Travel": "Travel",
    "Bills": "Utilities",

    # Detailed categories
    "Restaurants": "Food & Dining",
    "Fast Food": "Food & Dining",
    "Coffee Shop": "Food & Dining",
    "Bar": "Food & Dining",
    "Food Delivery": "Food & Dining",
    "Groceries": "Food & Dining",
    "Supermarkets and Groceries": "Food & Dining",

    "Gas Stations": "Transportation",
    "Taxi": "Transportation",
    "Public Transportation": "Transportation",
    "Parking": "Transportation",
    "Car Service": "Transportation",
    "Automotive": "Transportation",
    "Ride Share": "Transportation",

    "Department Stores": "Shopping",
    "Clothing and Accessories": "Shopping",
    "Electronics": "Shopping",
    "Home and Garden": "Shopping",
    "Sporting Goods": "Shopping",
    "Books and Music": "Shopping",
    "Online Shopping": "Shopping",

    "Movies and DVDs": "Entertainment",
    "Music and Audio": "Entertainment",
    "Sporting Events": "Entertainment",
    "Amusement": "Entertainment",
    "Arts and Crafts": "Entertainment",
    "Games": "Entertainment",
    "Gyms and Fitness Centers": "Entertainment",

    "Internet": "Utilities",
    "Mobile Phone": "Utilities",
    "Television": "Utilities",
    "Utilities": "Utilities",
    "Electric": "Utilities",
    "Gas": "Utilities",
    "Water": "Utilities",
    "Cable": "Utilities",

    "ATM": "Fees",
    "Late Fee": "Fees",
    "Overdraft": "Fees",
    "Foreign Transaction": "Fees",
    "Wire Transfer": "Fees",

    "Hotels": "Travel",
    "Airlines": "Travel",
    "Car Rental": "Travel",
    "Travel Agencies": "Travel",

    "Doctors": "Healthcare",
    "Dentists": "Healthcare",
    "Eye Care": "Healthcare",
    "Pharmacy": "Healthcare",
    "Medical Services": "Healthcare",
    "Mental Health": "Healthcare",

    "Insurance": "Services",
    "Professional Services": "Services",
    "Personal Care": "Services",
    "Repair and Maintenance": "Services",
    "Laundry and Dry Cleaning": "Services",
})

# Last-resort keyword groups over "merchant name + transaction name".
KEYWORD_RULES = (
    (re.compile(r"\b(taxi|cab|ride|transport|metro|bus|train|parking|toll|gas|fuel|petrol)\b", re.IGNORECASE),
     "Transportation"),
    (re.compile(r"\b(restaurant|cafe|coffee|pizza|food|lunch|dinner|breakfast|grocery|market)\b", re.IGNORECASE),
     "Food & Dining"),
    (re.compile(r"\b(store|shop|retail|mall|purchase|buy|order)\b", re.IGNORECASE),
     "Shopping"),
    (re.compile(r"\b(movie|cinema|game|sport|gym|fitness|entertainment|music|streaming)\b", re.IGNORECASE),
     "Entertainment"),
    (re.compile(r"\b(doctor|hospital|pharmacy|medical|health|dental|clinic)\b", re.IGNORECASE),
     "Healthcare"),
    (re.compile(r"\b(electric|water|gas|internet|phone|cable|utility|bill)\b", re.IGNORECASE),
     "Utilities"),
    (re.compile(r"\b(fee|charge|atm|bank|interest|penalty|overdraft)\b", re.IGNORECASE),
     "Fees"),
)

CATEGORY_COLORS = MappingProxyType({
    "Food & Dining": "#FF6B6B",
    "Shopping": "#4ECDC4",
    "Transportation": "#45B7D1",
    "Entertainment": "#96CEB4",
    "Healthcare": "#FECA57",
    "Services": "#54A0FF",
    "Utilities": "#FF9FF3",
    "Travel": "#A55EEA",
    "Fees": "#FD79A8",
    "Income": "#00B894",
    "Transfer": "#FDCB6E",
    OTHER: "#6C5CE7",
})

# (category, typical monthly amount) offered when creating a budget.
BUDGET_CATEGORY_SUGGESTIONS = (
    ("Food & Dining", 400),
    ("Shopping", 300),
    ("Transportation", 200),
    ("Entertainment", 150),
    ("Healthcare", 100),
    ("Utilities", 250),
    ("Services", 100),
    ("Travel", 200),
    ("Education", 100),
    ("Personal Care", 80),
)
