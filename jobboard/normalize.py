from typing import Any, Optional


def clean_text(s: Optional[str]) -> str:
    if not isinstance(s, str):
        return ""
    return " ".join(s.strip().split())


def nickname(person: Any) -> Optional[str]:
    """Short display name of an Octopod person record (nickname, else full name)."""
    if not isinstance(person, dict):
        return None
    nick = clean_text(person.get("nickname"))
    if nick:
        return nick
    full = clean_text(f"{person.get('first_name') or ''} {person.get('last_name') or ''}")
    return full or None


def customer_name(customer: Any) -> Optional[str]:
    if isinstance(customer, dict):
        return clean_text(customer.get("name")) or None
    if isinstance(customer, str):
        return clean_text(customer) or None
    return None
