"""Pure heuristics for pulling contact fields out of names, URLs and HTML."""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

CONTACT_HINTS = ["/contact", "/contacto", "/contactar", "/about", "/quienes-somos", "/empresa"]
EMAIL_REGEX = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}", re.IGNORECASE)
# Spanish numbers: mobiles and landlines, optional +34 prefix
PHONE_PATTERNS = [
    re.compile(r"(?:\+34\s?)?[6-9]\d{2}\s?\d{3}\s?\d{3}"),
    re.compile(r"(?:\+34\s?)?[6-9]\d{8}"),
    re.compile(r"(?:\+34\s?)?\d{3}\s?\d{3}\s?\d{3}"),
]
ADDRESS_PATTERNS = [
    re.compile(r"Calle\s+[^,\n]+,\s*\d+"),
    re.compile(r"Avenida\s+[^,\n]+,\s*\d+"),
    re.compile(r"Avda\.?\s+[^,\n]+,\s*\d+"),
    re.compile(r"Plaza\s+[^,\n]+,\s*\d+"),
    re.compile(r"C/\s*[^,\n]+,\s*\d+"),
]
IGNORED_EMAIL_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp")
NAME_SEPARATORS = re.compile(r"\s+[-|–]\s+.*$")


def canonicalize_url(href: str, base: str) -> str:
    """Resolve relative URLs and strip hash fragments."""
    return urljoin(base, href).split("#", maxsplit=1)[0]


def domain_from_url(url: str) -> str:
    """Extract the lowercase registrable host of a URL, without ``www.``."""
    host = urlparse(url).netloc.lower().split("@")[-1].split(":")[0]
    if host.startswith("www."):
        host = host[4:]
    return host


def clean_company_name(name: str) -> str:
    """Drop taglines after a dash or pipe ("Acme - Best widgets" -> "Acme")."""
    return NAME_SEPARATORS.sub("", name or "").strip()


def extract_emails(text: str) -> list[str]:
    """Return normalized emails in first-seen order, skipping asset filenames."""
    output: list[str] = []
    for match in EMAIL_REGEX.finditer(text or ""):
        email = match.group(0).lower().rstrip(".")
        if email.endswith(IGNORED_EMAIL_SUFFIXES) or email in output:
            continue
        output.append(email)
    return output


def extract_phone(text: str) -> str | None:
    for pattern in PHONE_PATTERNS:
        match = pattern.search(text or "")
        if match:
            return match.group(0).strip()
    return None


def extract_address(text: str) -> str | None:
    for pattern in ADDRESS_PATTERNS:
        match = pattern.search(text or "")
        if match:
            return match.group(0).strip()
    return None


def html_to_text(html: str) -> str:
    """Visible text of an HTML document, scripts and styles removed."""
    soup = BeautifulSoup(html or "", "html.parser")
    for node in soup(["script", "style", "noscript"]):
        node.decompose()
    return soup.get_text(" ", strip=True)


def find_mailto_addresses(html: str) -> list[str]:
    soup = BeautifulSoup(html or "", "html.parser")
    addresses: list[str] = []
    for anchor in soup.find_all("a", href=True):
        href = str(anchor["href"]).strip()
        if not href.lower().startswith("mailto:"):
            continue
        address = href.split(":", maxsplit=1)[1].split("?", maxsplit=1)[0].strip().lower()
        if "@" in address and address not in addresses:
            addresses.append(address)
    return addresses


def find_contact_link(html: str, base_url: str) -> str | None:
    """First same-site contact/about page linked from ``html``."""
    soup = BeautifulSoup(html or "", "html.parser")
    base_domain = domain_from_url(base_url)
    for anchor in soup.find_all("a", href=True):
        href = str(anchor["href"]).strip()
        if href.lower().startswith(("mailto:", "tel:", "javascript:")):
            continue
        if any(hint in href.lower() for hint in CONTACT_HINTS):
            url = canonicalize_url(href, base_url)
            if domain_from_url(url) == base_domain:
                return url
    return None


def pick_email(html: str, website_domain: str) -> str | None:
    """Best email on a page: same-domain mailto, then same-domain text, then any."""
    candidates = find_mailto_addresses(html) + extract_emails(html_to_text(html))
    for email in candidates:
        if email.split("@", maxsplit=1)[1].endswith(website_domain):
            return email
    return candidates[0] if candidates else None
