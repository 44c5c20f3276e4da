HTTP_STATUS_CODES = {
    "OK": 200,
    "CREATED": 201,
    "NO_CONTENT": 204,
    "BAD_REQUEST": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "VALIDATION_ERROR": 422,
    "TOO_MANY_REQUESTS": 429,
    "INTERNAL_SERVER_ERROR": 500,
    "SERVICE_UNAVAILABLE": 503,
}

AUTHENTICATION_MESSAGES = {
    "AUTHENTICATION_REQUIRED": "Authentication Required",
    "TOKEN_EXPIRED": "Token expired",
    "INVALID_TOKEN": "Invalid token",
}

SYSTEM_USERS = {
    "SUPER_ADMIN": "super_admin",
    "COMPANY_ADMIN": "company_admin",
    "EMPLOYEE": "employee",
    "VENDOR": "vendor",
}

DISPATCH_ESTIMATES = {
    "direct": "3-5 business days",
    "central": "5-7 business days",
    "regional": "7-10 business days",
}

BULK_IMPORT_ALLOWED_EXTENSIONS = {"csv", "xlsx"}
