from typing import Dict, List

# Subreddit packs: a ready-made set of communities plus the keywords that suit them
SUBREDDIT_PACKS: Dict[str, Dict[str, List[str]]] = {
    "saas": {
        "subreddits": ["SaaS", "microsaas", "EntrepreneurRideAlong", "indiehackers"],
        "keywords": ["MRR", "ARR", "churn", "selling", "exit", "revenue"],
    },
    "ecommerce": {
        "subreddits": ["ecommerce", "FulfillmentByAmazon", "shopify", "dropship"],
        "keywords": ["selling", "FBA", "revenue", "exit", "Shopify store"],
    },
    "service": {
        "subreddits": ["smallbusiness", "sweatystartup", "Entrepreneur", "sidehustle"],
        "keywords": ["selling", "exit", "retire", "acquisition", "burned out"],
    },
}

DEFAULT_SUBREDDITS = SUBREDDIT_PACKS["saas"]["subreddits"]

DEFAULT_KEYWORDS = [
    "selling", "exit", "MRR", "ARR", "revenue", "burned out",
    "moving on", "acquisition", "for sale", "looking for buyer",
]

# "all" reads the main Product Hunt feed
DEFAULT_PRODUCTHUNT_TOPICS = ["all"]
