"""Domain-specific exceptions for the wardrobe planner service."""


class WardrobePlannerError(Exception):
    """Base exception for wardrobe planner errors."""

    code = "wardrobe_planner_error"


class InvalidDesignCodeError(WardrobePlannerError, ValueError):
    """Raised when a user-entered design code is malformed."""

    code = "invalid_design_code"


class DesignNotFoundError(WardrobePlannerError):
    """Raised when no (non-deleted) design exists for a code."""

    code = "design_not_found"

    def __init__(self, design_code: str, channel: str = "flexi"):
        self.design_code = design_code
        self.channel = channel
        super().__init__(f"Design {design_code} not found")


class DesignCodeCollisionError(WardrobePlannerError):
    """Raised when a generated code is already taken in the store."""

    code = "design_code_collision"

    def __init__(self, design_code: str):
        self.design_code = design_code
        super().__init__(f"Design code {design_code} is already in use")


class DesignConflictError(WardrobePlannerError):
    """Raised when a design keeps changing underneath a write."""

    code = "design_conflict"

    def __init__(self, design_code: str):
        self.design_code = design_code
        super().__init__(f"Design {design_code} was modified concurrently, try again")


class StoreUnavailableError(WardrobePlannerError):
    """Raised when the document store is not connected."""

    code = "store_unavailable"


class CatalogError(WardrobePlannerError):
    """Base exception for catalog errors."""

    code = "catalog_error"


class UnknownCollectionError(CatalogError):
    """Raised for a catalog collection name that does not exist."""

    code = "unknown_collection"

    def __init__(self, collection: str):
        self.collection = collection
        super().__init__(f"Unknown catalog collection: {collection}")


class CatalogItemNotFoundError(CatalogError):
    """Raised when a catalog item cannot be found."""

    code = "catalog_item_not_found"

    def __init__(self, collection: str, item_id: str):
        self.collection = collection
        self.item_id = item_id
        super().__init__(f"Item {item_id} not found in {collection}")


class EmailNotConfiguredError(WardrobePlannerError):
    """Raised when SMTP credentials are missing."""

    code = "email_not_configured"

    def __init__(self):
        super().__init__(
            "Email service not configured. Set EMAIL_USER and EMAIL_PASS in environment."
        )


class EmailDeliveryError(WardrobePlannerError):
    """Raised when the SMTP server rejects or fails to deliver a message."""

    code = "email_delivery_failed"
