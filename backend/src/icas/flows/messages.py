"""Fixed user-facing messages and sentinel prefixes used by the flows.

Stage failures are reported inside the result fields, always starting
with ``STAGE_FAILURE_PREFIX``.
"""

STAGE_FAILURE_PREFIX = "Stage failure: "
SYSTEM_NOTICE_PREFIX = "SYSTEM NOTICE:"
UNKNOWN_FILE = "Unknown"

NO_INPUT_PROVIDED = "No input content provided"
EMPTY_RESPONSE = "Empty response from capability"

# Clerk defaults
NO_VALID_CLERK_INPUT = "No valid input data for clerk analysis."
TEXT_NOT_EXTRACTED = "Text not extracted or missing from the capability response."
SYSTEM_NOTICE_SUMMARY = (
    "Direct analysis of the file content was not possible. "
    "Analysis is based on metadata such as the file name and MIME type."
)

# Classification
INSUFFICIENT_TEXT = "Insufficient text content for crime analysis."
NO_CRIME_DETECTED = "No apparent criminal activity or relevant suspicious activity detected in the text."
CRIME_DETECTED = "Criminal or suspicious activities were detected."
MIN_CLASSIFICATION_LENGTH = 10

INVALID_INPUT = (
    "Invalid input: no document or text content was provided for analysis. "
    "Check the request."
)

FAILURE_PREFIXES = (STAGE_FAILURE_PREFIX,)


def stage_failure(cause: str, file_name: str | None = None) -> str:
    """Build a stage failure sentinel, optionally naming the file."""
    message = f"{STAGE_FAILURE_PREFIX}{cause}"
    if file_name is not None:
        message += f". (File: {file_name or UNKNOWN_FILE})"
    return message


def is_failure_text(text: str | None) -> bool:
    """Whether a field carries a stage failure sentinel."""
    return bool(text) and text.startswith(FAILURE_PREFIXES)


def is_system_notice(text: str | None) -> bool:
    return bool(text) and text.startswith(SYSTEM_NOTICE_PREFIX)


def build_system_notice(file_name: str, mime_type: str | None) -> str:
    """Describe a file whose binary content cannot be processed directly."""
    return (
        f"{SYSTEM_NOTICE_PREFIX} The file '{file_name}' (MIME type: {mime_type or 'unknown'}) "
        "was provided. Its binary content cannot be processed or extracted directly "
        "in this flow. Subsequent analysis must focus on the file name, the declared "
        "MIME type and the nature of this notice. Try to extract entities from the "
        "file name and the MIME type."
    )


def press_contact_line(office_name: str, contact: str) -> str:
    return f"Contact: {office_name} - {contact}."
