#!/usr/bin/env python3
"""
Configuration file for the ShopStation list matcher
Edit these values according to your catalog and deployment
"""

import os

# File Paths
# Catalog JSON (products + per-store prices) read by workflow.py
#
# Each path can be overridden from the environment (or a .env file in the
# project root, loaded by workflow.py):
#   SHOPSTATION_CATALOG, SHOPSTATION_ANALYTICS_FILE, SHOPSTATION_LEARNED_SYNONYMS
#
PATHS = {
    'rules_dir': os.environ.get('SHOPSTATION_RULES_DIR', ''),     # Empty -> matching/rules
    'catalog_file': os.environ.get('SHOPSTATION_CATALOG', 'data/sample_catalog.json'),
    'analytics_file': os.environ.get('SHOPSTATION_ANALYTICS_FILE', 'data/analytics.json'),
    'learned_synonyms_file': os.environ.get('SHOPSTATION_LEARNED_SYNONYMS', 'data/learned_synonyms.json'),
    'log_folder': 'logs/',
    'output_folder': 'output/',
}

# Product Matching Settings
MATCHING = {
    'exact_confidence': 1.0,           # Catalog key / display name equality
    'synonym_confidence': 0.95,        # Synonym table or product synonyms
    'similarity_floor': 0.5,           # Fuzzy candidates must score strictly above this
    'accept_threshold': 0.6,           # List reconciler keeps matches strictly above this
    'fuzzy_confidence_cap': 0.9,       # Reported confidence ceiling for fuzzy/partial
    'partial_threshold': 0.8,          # Boosted score above this reports 'partial', else 'fuzzy'
    'substring_floor': 0.8,            # Minimum score when query and name contain each other
    'category_boost': 1.2,             # Multiplier for same-category candidates
    'auto_learn_threshold': 0.7,       # Similarity needed to auto-attach an unmatched phrase
    'auto_learn_min_count': 2,         # Times a phrase must go unmatched before auto-learning
}

# Store Comparison Settings
# ranking:
#   'total'    - rank by raw basket total, partial coverage competes with full coverage
#   'coverage' - rank by number of items available first, then total
STORE_COMPARISON = {
    'ranking': os.environ.get('SHOPSTATION_RANKING', 'total'),
    'include_unmatched_in_missing': True,   # List unmatched lines as missing at every store
    'default_stores': ['B Kosher', 'Tapuach', 'Kosher Kingdom', 'Kays'],
}

# Analytics Settings
ANALYTICS = {
    'enabled': True,
    'max_errors': 100,                 # Keep only the most recent error entries
    'summary_days': 30,
}

# Logging Settings
LOGGING = {
    'level': os.environ.get('SHOPSTATION_LOG_LEVEL', 'INFO'),   # DEBUG, INFO, WARNING, ERROR
    'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
}
