KIND_BUNDLE = "BUNDLE"
KIND_MODULE = "MODULE"

STATUS_DRAFT = "DRAFT"
STATUS_ACTIVE = "ACTIVE"
STATUS_ARCHIVED = "ARCHIVED"
