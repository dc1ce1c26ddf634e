"""
Core constants — **Single Source of Truth** for project-wide defaults.

Any business rule that references a default value should import it from
here instead of hardcoding.  Deployments override the complaint-ID
format through Django settings of the same name.
"""

# ── Complaint identifiers ───────────────────────────────────────────
# Human-readable complaint codes look like ``CMP-00045``:
#     <COMPLAINT_ID_PREFIX>-<sequence zero-padded to COMPLAINT_ID_LENGTH>
COMPLAINT_ID_PREFIX: str = "CMP"
COMPLAINT_ID_LENGTH: int = 5
COMPLAINT_ID_START_NUMBER: int = 1

# ── Reopen workflow ─────────────────────────────────────────────────
DEFAULT_REOPEN_COMMENT: str = "Complaint reopened by administrator"
REOPEN_CASCADE_COMMENT: str = "Complaint automatically moved to ASSIGNED after reopening"

# ── Assignment sentinel ─────────────────────────────────────────────
# Legacy clients send the literal string "none" for "no selection".
UNASSIGNED: str = "none"
