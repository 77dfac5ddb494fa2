"""User-facing messages returned by the API."""

# Authentication
AUTH_INVALID_CREDENTIALS = "Invalid username or password"
AUTH_USER_INACTIVE = "User account is disabled"
AUTH_COULD_NOT_VALIDATE = "Could not validate credentials"
AUTH_SESSION_INVALID = "Session invalid. Please sign out and sign in again."
AUTH_REFRESH_TOKEN_MISSING = "Missing refresh token. Please log in again."
AUTH_REFRESH_TOKEN_INVALID = "Invalid refresh token"
AUTH_REFRESH_TOKEN_PAYLOAD_INVALID = "Invalid refresh token payload"
AUTH_REFRESH_TOKEN_REVOKED = "Refresh token has been rotated or revoked"
AUTH_TOO_MANY_ATTEMPTS = "Too many login attempts. Try again in 15 minutes."
AUTH_LOGOUT_SUCCESS = "Logged out"
AUTH_UNAUTHORIZED = "Unauthorized"
AUTH_GUEST_READ_ONLY = "Unauthorized: Guest account is read-only."
AUTH_INSUFFICIENT_PERMISSIONS = "Insufficient permissions"

# Registration
REG_MISSING_FIELDS = "Missing required fields"
REG_EMAIL_EXISTS = "Email already registered"
REG_USERNAME_EXISTS = "Username already taken"
REG_DISABLED = "Registration is currently disabled by the administrator."
REG_SUCCESS = "User registered successfully"

# Users
USER_NOT_FOUND = "User not found"
USER_INCORRECT_PASSWORD = "Incorrect current password"
USER_INVALID_RESET_TOKEN = "Invalid or expired reset token"
USER_INVALID_LANGUAGE = "Invalid language"
USER_INVALID_ROLE = "Invalid role"
USER_ALREADY_EXISTS = "User with this email or username already exists"
USER_CANNOT_DELETE_SELF = "You cannot delete your own account"
USER_RESET_REQUESTED = "If an account exists for this email, a reset link has been sent."
USER_PASSWORD_RESET = "Password has been reset"
ADMIN_INVALID_CODE_FORMAT = "Invalid code format."
ADMIN_CONFIG_MISSING = "Configuration file missing."
ADMIN_INCORRECT_CODE = "Incorrect code."
ADMIN_PROMOTED = "You are now an Administrator."

# Collections
COLLECTION_NOT_FOUND = "Collection not found"
COLLECTION_NAME_EXISTS = "A collection with this name already exists in this folder."
COLLECTION_NAME_EXISTS_DESTINATION = "A collection with this name already exists in the destination folder."
COLLECTION_MOVE_SELF = "Cannot move a collection to itself."
COLLECTION_MOVE_DESCENDANT = "Cannot move a collection into its own descendant."
COLLECTION_NAME_EMPTY = "Name cannot be empty"
COLLECTION_USER_PROHIBITED = "User prohibited"
ACCESS_DENIED = "Access denied"

# Prompts
PROMPT_NOT_FOUND = "Prompt not found"
PROMPT_TITLE_EXISTS = "A prompt with this title already exists."
PROMPT_LOCKED = "Prompt is locked. Unlock it to make changes."
PROMPT_LOCKED_BY_CREATOR = "Prompt is locked by the creator."
PROMPT_LOCK_CREATOR_ONLY = "Only the creator can lock/unlock this prompt."
PROMPT_VISIBILITY_CREATOR_ONLY = "Only the creator can change visibility."
PROMPT_LINK_SELF = "Cannot link prompt to itself"
VERSION_NOT_FOUND = "Version not found for this prompt"
TAG_NAME_REQUIRED = "Tag name is required"

# Import / export
IMPORT_INVALID_JSON = "Invalid format: Not a JSON file or corrupted data."
IMPORT_INVALID_SCHEMA = "Invalid data format: The JSON does not match the expected schema."
EXPORT_NO_COLLECTIONS = "No collections selected"

# Files
FILE_INVALID_NAME = "Invalid filename"
FILE_NOT_FOUND = "File not found"

# Analytics
ANALYTICS_MISSING_FIELDS = "Missing fields"

# Workflows
WORKFLOW_NOT_FOUND = "Workflow not found or unauthorized"

# Backup
BACKUP_NO_PATH = "No backup path configured."
BACKUP_DIR_INACCESSIBLE = "Could not access backup directory."
BACKUP_NO_FILES = "No backup files found."
BACKUP_WRONG_USER = "Backup does not belong to this user."
BACKUP_UNREADABLE = "Backup file is corrupt or unreadable."

# Scraper
SCRAPER_URL_REQUIRED = "URL is required"
SCRAPER_FAILED = "Failed to scrape URL"
