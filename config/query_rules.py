"""
Query Rule Tables

Static data consumed by the query engine: spelling dictionary, keyword
tables, vocabularies and the action decision table.

All matching is done on lowercase text with word boundaries. The tables are
compiled once into an immutable EngineConfig (src/query_engine/rules.py);
fixing a misrouted query should be an edit here, not a code change.
Bump RULES_VERSION whenever a table changes.
"""

RULES_VERSION = "2024.4"


# =============================================================================
# SPELL CORRECTION
# =============================================================================
# misspelled token -> correction. A correction must never itself be a key.
SPELL_CORRECTIONS = {
    # contract
    "cntract": "contract",
    "contrct": "contract",
    "kontrct": "contract",
    "contrst": "contract",
    "contarct": "contract",
    "cntrct": "contract",
    "contrat": "contract",
    "contraxt": "contract",
    "conract": "contract",
    "cntracts": "contracts",
    "contrcts": "contracts",
    "contarcts": "contracts",
    # parts
    "prts": "parts",
    "partz": "parts",
    "parst": "parts",
    "partes": "parts",
    "prt": "part",
    # customer / account
    "custmr": "customer",
    "cutomer": "customer",
    "custmer": "customer",
    "customar": "customer",
    "custemer": "customer",
    "accnt": "account",
    "acnt": "account",
    "acount": "account",
    "accout": "account",
    "compny": "company",
    "busness": "business",
    # verbs
    "shw": "show",
    "shwo": "show",
    "dsply": "display",
    "disply": "display",
    "lsit": "list",
    "lst": "list",
    "fnd": "find",
    "serch": "search",
    "seach": "search",
    "retrive": "retrieve",
    "retreive": "retrieve",
    "crete": "create",
    "creat": "create",
    "crated": "created",
    "loadded": "loaded",
    "loadding": "loading",
    "addedd": "added",
    "inclde": "include",
    # attributes
    "detals": "details",
    "detils": "details",
    "activ": "active",
    "expird": "expired",
    "effctiv": "effective",
    "effectiv": "effective",
    "effectuve": "effective",
    "expiraion": "expiration",
    "exipraion": "expiration",
    "expirasion": "expiration",
    "numbr": "number",
    "nubmer": "number",
    "staus": "status",
    "statys": "status",
    "prjct": "project",
    # connectives
    "btw": "between",
    "beetwen": "between",
    "betwen": "between",
    "aftr": "after",
    "befor": "before",
    "plz": "please",
    "wat": "what",
    "abt": "about",
    "abot": "about",
}


# =============================================================================
# INTENT CLASSIFICATION
# =============================================================================
# Category priority, highest first. Used to break score ties.
CATEGORY_PRIORITY = (
    "status_check",
    "customer_info",
    "user_query",
    "help",
    "parts_lookup",
    "contract_lookup",
)

# category -> {keyword or phrase: weight}
INTENT_KEYWORDS = {
    "status_check": {
        "status": 2.0,
        "active": 1.5,
        "inactive": 1.5,
        "expired": 1.5,
        "expiring": 1.5,
        "pending": 1.0,
        "cancelled": 1.0,
        "canceled": 1.0,
        "terminated": 1.0,
        "draft": 1.0,
    },
    "customer_info": {
        "customer": 2.0,
        "customers": 2.0,
        "client": 2.0,
        "account name": 2.0,
        "company": 1.0,
        "vendor": 1.0,
    },
    "user_query": {
        "created by": 2.5,
        "user": 1.5,
        "author": 1.5,
        "creator": 1.5,
        "owner": 1.0,
    },
    "help": {
        "help": 2.5,
        "how to": 2.5,
        "create": 2.0,
        "creating": 2.0,
        "guide": 1.5,
        "tutorial": 1.5,
        "instructions": 1.5,
        "steps": 1.0,
        "workflow": 1.0,
        "generate": 1.0,
        "new": 1.0,
        "make": 1.0,
        "explain": 1.0,
    },
    "parts_lookup": {
        "parts": 3.0,
        "part": 3.0,
        "components": 1.5,
        "component": 1.5,
        "line items": 1.5,
        "datasheet": 1.5,
        "specifications": 1.0,
        "product": 1.0,
        "products": 1.0,
        "inventory": 1.0,
        "stock": 1.0,
        "items": 1.0,
        "materials": 1.0,
        "supplies": 1.0,
        "manufacturer": 1.0,
    },
    "contract_lookup": {
        "contract": 3.0,
        "contracts": 3.0,
        "agreement": 2.0,
        "agreements": 2.0,
        "award": 2.0,
        "effective": 1.0,
        "expiration": 1.0,
        "details": 0.5,
        "info": 0.5,
        "information": 0.5,
        "show": 0.5,
        "list": 0.5,
        "get": 0.5,
        "find": 0.5,
        "pull": 0.5,
        "display": 0.5,
        "search": 0.5,
        "retrieve": 0.5,
        "fetch": 0.5,
    },
}

# Phrases that force the status_check category regardless of scores.
STATUS_OVERRIDE_PHRASES = (
    "active contracts",
    "expired contracts",
    "inactive contracts",
    "pending contracts",
    "expiring contracts",
    "cancelled contracts",
)

# Categories whose query type follows the dominant subject (parts or contracts).
FOCUS_CATEGORIES = ("status_check", "customer_info", "user_query", "contract_lookup")


# =============================================================================
# ROUTING
# =============================================================================
# Parts keywords are the parts_lookup keywords above.
CREATION_KEYWORDS = (
    "create",
    "creating",
    "created",
    "make",
    "new",
    "add",
    "adding",
    "added",
    "generate",
    "generated",
)

# Explicit requests for instructions; route to HELP like creation verbs but
# never trigger the parts creation rule.
HELP_REQUEST_KEYWORDS = (
    "help",
    "how to",
    "guide",
    "steps",
    "workflow",
    "tutorial",
    "instructions",
)

PAST_TENSE_VERBS = ("created", "added", "generated")
PAST_TENSE_MARKERS = ("by", "in", "after", "before")

QUERY_INDICATORS = (
    "show",
    "display",
    "list",
    "get",
    "find",
    "pull",
    "what",
    "which",
    "why",
    "how",
    "when",
    "where",
    "status",
    "happened",
    "happen",
    "during",
    "loaded",
    "loading",
)

PARTS_CREATE_VIOLATION = "Parts creation is not allowed in this system"
PARTS_CREATE_REASON = "Parts creation not supported - parts are loaded from Excel files"
PAST_TENSE_ENHANCEMENT = "Past-tense detection applied"


# =============================================================================
# ENTITY EXTRACTION
# =============================================================================
CONTRACT_KEYWORDS = ("contract", "contracts", "award", "awards", "agreement", "agreements")
ACCOUNT_KEYWORDS = ("account", "acct")
CUSTOMER_KEYWORDS = ("customer", "client", "account name")

# Words that end a customer name or can never be a creator name.
NAME_STOP_WORDS = (
    "a", "an", "the", "and", "or", "for", "with", "by", "in", "on", "of", "at",
    "to", "from", "is", "are", "was", "were", "me", "us", "them", "my", "our",
    "created", "after", "before", "between", "since", "until", "during",
    "status", "date", "year", "name", "number", "id", "no",
    "contract", "contracts", "part", "parts", "account", "customer", "client",
    "that", "which", "where", "who", "whose", "what", "when",
    "active", "inactive", "expired", "pending", "cancelled", "draft",
    "default", "all", "any", "please",
)

# Letter prefixes that look like ordinary words; a part number using one of
# them needs a context word nearby.
AMBIGUOUS_PART_PREFIXES = ("in", "on", "at", "by", "of", "to", "no", "id", "fy", "yr", "q", "is", "as")
PART_CONTEXT_WORDS = ("part", "parts", "pn", "specifications", "specs", "datasheet", "component")

STATUS_VOCABULARY = (
    "active",
    "inactive",
    "expired",
    "expiring",
    "pending",
    "cancelled",
    "canceled",
    "terminated",
    "draft",
    "closed",
    "suspended",
    "approved",
)

COMPANY_SUFFIXES = (
    "Inc", "Corp", "Corporation", "Incorporated", "LLC", "Ltd", "Limited",
    "Co", "Company", "Group", "Systems", "Technologies", "Tech", "Solutions",
    "Services", "Industries", "Manufacturing", "Mfg", "International", "Intl",
    "Global", "Worldwide", "Enterprises",
)

KNOWN_COMPANIES = (
    "siemens",
    "microsoft",
    "google",
    "apple",
    "amazon",
    "oracle",
    "ibm",
    "boeing",
    "honeywell",
    "lockheed",
    "raytheon",
    "general electric",
)


# =============================================================================
# ACTION DECISION TABLE
# =============================================================================
# query type -> ordered (signal, action); first present signal wins.
# Signals are entity keys plus the topic markers "topic:contract" and
# "topic:parts".
ACTION_TABLE = {
    "CONTRACT": (
        ("contract_number", "contracts_by_contractNumber"),
        ("created_by", "contracts_by_user"),
        ("account_number", "contracts_by_accountNumber"),
        ("customer_name", "contracts_by_customerName"),
        ("part_number", "contracts_by_parts"),
        ("status", "contracts_by_status"),
    ),
    "PARTS": (
        ("part_number", "parts_by_partNumber"),
        ("contract_number", "parts_by_contract"),
        ("created_by", "parts_by_user"),
        ("customer_name", "parts_by_customer"),
        ("account_number", "parts_by_customer"),
    ),
    "HELP": (
        ("topic:contract", "help_contract_creation"),
        ("topic:parts", "help_parts_search"),
    ),
}

FALLBACK_ACTIONS = {
    "CONTRACT": "contracts_general",
    "PARTS": "parts_general",
    "HELP": "help_general",
    "UNKNOWN": "unknown",
    "ERROR": "error",
}

# Fallback actions that still need one of these entities (or any operator
# when "operators" is listed) to be answerable.
ACTION_REQUIREMENTS = {
    "parts_general": ("part_number", "contract_number"),
    "contracts_general": ("contract_number", "customer_name", "created_by", "operators"),
}

ENTITY_LABELS = {
    "contract_number": "a contract number",
    "part_number": "a part number",
    "account_number": "an account number",
    "customer_name": "a customer name",
    "created_by": "a user name",
    "operators": "a date or status filter",
}

# Default display columns per query type, used when the text names none.
REQUESTED_FIELDS = {
    "CONTRACT": ("contractNumber", "customerName", "effectiveDate", "expirationDate", "status"),
    "PARTS": ("partNumber", "contractNumber", "description", "price", "leadTime"),
    "HELP": ("topic", "steps"),
}

# phrase naming a display column -> column. Filter words (status, customer,
# created) are left out: they usually restrict rows rather than ask for a column.
REQUESTED_ATTRIBUTES = {
    "effective date": "effectiveDate",
    "effective": "effectiveDate",
    "start date": "effectiveDate",
    "expiration date": "expirationDate",
    "expiration": "expirationDate",
    "expiry": "expirationDate",
    "expires": "expirationDate",
    "end date": "expirationDate",
    "price": "price",
    "prices": "price",
    "pricing": "price",
    "cost": "price",
    "lead time": "leadTime",
    "quantity": "quantity",
    "qty": "quantity",
    "available": "availableQuantity",
    "availability": "availableQuantity",
    "terms": "terms",
    "payment terms": "paymentTerms",
    "contract value": "contractValue",
    "total value": "contractValue",
    "currency": "currency",
    "description": "description",
    "specification": "specifications",
    "specifications": "specifications",
    "specs": "specifications",
    "model": "model",
    "vendor": "vendorName",
    "contact": "contactPerson",
    "department": "department",
    "region": "region",
}


# =============================================================================
# SUGGESTIONS
# =============================================================================
EXAMPLE_QUERIES = {
    "contract": (
        "show contract 123456",
        "contracts created by vinod after 2020",
        "expired contracts for customer Siemens",
        "contracts for account 100200300",
    ),
    "parts": (
        "list parts for contract 789012",
        "specifications of part AE12345",
        "parts for customer ABC Corp",
    ),
    "help": (
        "how to create a contract",
        "help with creating a contract",
    ),
}

IMPROVEMENT_HINTS = {
    "no_subject": "Try using words like 'contract', 'parts', or 'help'",
    "contract_filters": "Consider adding a contract number, user name, or customer name for more specific results",
    "parts_filters": "Consider adding a part number or contract number for more specific results",
    "too_short": "Add a few more words describing what you are looking for",
}

DIAGNOSTIC_QUERIES = (
    "show contract 123456",
    "pull contracts created by vinod after 2020 before 2024 status expired",
    "list parts for contract 789012",
    "help create contract",
    "get contrst78954632",
    "parts by custmr ABC Corp",
    "why wasn't part AE125 loaded for contract 123456",
    "create new parts for contract 123456",
    "contracts created in 2024",
    "",
)
