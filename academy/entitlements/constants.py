SCOPE_MODULE = "MODULE"
SCOPE_BUNDLE = "BUNDLE"

GRANT_MODULE_PURCHASE = "MODULE_PURCHASE"
GRANT_BUNDLE_PURCHASE = "BUNDLE_PURCHASE"
GRANT_GIFT = "GIFT"
GRANT_ADMIN = "ADMIN_GRANT"

SCOPE_BY_COURSE_KIND: dict[str, str] = {
    "MODULE": SCOPE_MODULE,
    "BUNDLE": SCOPE_BUNDLE,
}
