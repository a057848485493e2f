"""Shared constants for collections, thresholds and logger names."""

LOGGER_NAME = "vault_hygiene"

# Storage collections
VAULT_COLLECTION = "vault"
META_COLLECTION = "meta"
AUDIT_COLLECTION = "audit"
TIMELINE_COLLECTION = "timeline"
COLLECTIONS = (
    VAULT_COLLECTION,
    META_COLLECTION,
    AUDIT_COLLECTION,
    TIMELINE_COLLECTION,
)

# Meta keys
SALT_KEY = "salt"
VERIFIER_KEY = "verifier"

# Age thresholds (days)
ROTATION_AGE_DAYS = 90
STALE_AGE_DAYS = 180
ANCIENT_AGE_DAYS = 365

# Raw entropy thresholds (bits)
HEALTH_WEAK_BITS = 50
LABEL_WEAK_BITS = 45
CRACKABLE_BITS = 40

# Entropy normalisation for the radar "entropy" axis
RADAR_TARGET_BITS = 80
