# NCSTACK v1.0 - Input validation
import re

_DNS_LABEL = re.compile(r'^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$')
_EMAIL = re.compile(r'^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$')


def validate_domain(domain):
    '''Validate a DNS name (dot separated labels of 1-63 chars).
    Returns the stripped domain or raises ValueError.
    '''
    if not domain or not isinstance(domain, str):
        raise ValueError("Domain name is required")

    domain = domain.strip()

    if len(domain) > 253:
        raise ValueError("Domain name too long (max 253 chars)")

    for label in domain.split('.'):
        if len(label) > 63:
            raise ValueError(f"Label '{label[:16]}...' is longer than 63 characters")
        if not _DNS_LABEL.match(label):
            raise ValueError("Domain labels may only contain letters, digits and inner hyphens")

    return domain


def validate_email(email):
    '''Validate an e-mail address. Returns it stripped or raises ValueError.'''
    if not email or not isinstance(email, str):
        raise ValueError("E-mail address is required")

    email = email.strip()

    if not _EMAIL.match(email):
        raise ValueError("Please enter a valid email address")

    return email


def validate_username(name):
    '''Validate a Nextcloud login name.'''
    if not name or not isinstance(name, str):
        raise ValueError("Username is required")

    name = name.strip()

    if not re.match(r'^[a-zA-Z0-9_.@-]+$', name):
        raise ValueError("Username may only contain letters, digits and _.@-")

    return name


def validate_env_value(value):
    '''Values are written single-quoted to .env, one per line.
    Line breaks, single quotes and backslashes would change what docker compose reads.
    '''
    if '\n' in value or '\r' in value:
        raise ValueError("Value must not contain line breaks")
    if "'" in value or '\\' in value:
        raise ValueError("Value must not contain single quotes or backslashes")
    return value
