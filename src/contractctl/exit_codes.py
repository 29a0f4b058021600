from __future__ import annotations

OK = 0
ERR_CONFIG = 10
ERR_LINT = 12
ERR_BREAKING = 13
ERR_ARTIFACT = 14
ERR_VALIDATION = 15
ERR_USAGE = 64
ERR_INTERNAL = 99

# Traceability audit outcomes keep their own codes so CI can branch on cause.
AUDIT_PASS = 0
AUDIT_THRESHOLD_FAIL = 1
AUDIT_STRICT_FAIL = 2
