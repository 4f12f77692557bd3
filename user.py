from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

FIELD_NAMES = ('name', 'username', 'email')


class UserRecord(BaseModel):
    """One user as returned by the remote collection.

    Extra keys in the payload (address, phone, ...) are ignored.
    """
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    username: str
    email: str


class UserForm(BaseModel):
    """Validated form input for creating or updating a user."""
    name: str = Field(min_length=5, max_length=50)
    username: str = Field(min_length=3, max_length=20)
    email: str

    @field_validator('email')
    @classmethod
    def check_email(cls, value):
        # Only a bare address; no display name, brackets or padding.
        if value != value.strip() or '<' in value or '>' in value:
            raise ValueError('Invalid email')
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError('Invalid email') from e
        return value


def _error_message(error):
    ctx = error.get('ctx') or {}
    if error['type'] == 'string_too_short':
        return f"String must contain at least {ctx['min_length']} character(s)"
    if error['type'] == 'string_too_long':
        return f"String must contain at most {ctx['max_length']} character(s)"
    if error['type'] == 'value_error':
        return 'Invalid email'
    return error['msg']


def validate_user(raw):
    """Validate raw form values.

    Returns ``(UserForm, {})`` when every rule passes, otherwise
    ``(None, errors)`` with one message per failing field.
    """
    values = {name: raw.get(name, '') for name in FIELD_NAMES}
    try:
        return UserForm(**values), {}
    except ValidationError as e:
        errors = {}
        for error in e.errors():
            field = error['loc'][0] if error['loc'] else None
            if field in FIELD_NAMES and field not in errors:
                errors[field] = _error_message(error)
        return None, errors
