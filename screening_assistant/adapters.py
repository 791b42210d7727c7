"""Field adapters: the only seam between the pipeline and a host's form.

Interface:
    list_fields() -> list of opaque field handles
    read_context(field) -> FieldContext
    set_value(field, text) -> None
    notify_changed(field, event) -> None   # "input", "change", "blur"

Each host (browser extension, webview, in-app browser, static HTML) implements
FieldAdapter. HtmlFormAdapter is the implementation for HTML documents.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import requests
from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)


@dataclass
class FieldContext:
    """Everything the detector needs to know about one form field."""

    locator: Any
    label: str = ""
    placeholder: str = ""
    heading: str = ""
    help_text: str = ""
    name: str = ""
    element_id: str = ""
    class_name: str = ""
    required: bool = False
    aria_required: bool = False
    container_classes: list[str] = field(default_factory=list)
    max_length: int | None = None
    value: str = ""
    form_index: int | None = None


class FieldNotFoundError(LookupError):
    """The locator no longer resolves to a field in the host document."""


class FieldAdapter(ABC):
    """Host capability interface for reading and filling form fields."""

    @abstractmethod
    def list_fields(self) -> list[Any]:
        """Return opaque handles for every candidate field, in document order."""

    @abstractmethod
    def read_context(self, field: Any) -> FieldContext:
        """Return the text and required-ness signals associated with a field."""

    @abstractmethod
    def set_value(self, field: Any, text: str) -> None:
        """Set the field's value. Raises FieldNotFoundError for stale handles."""

    @abstractmethod
    def notify_changed(self, field: Any, event: str) -> None:
        """Emit the host's change notification for the field."""


# ── HTML implementation ─────────────────────────────────────────

# Candidate screening-question fields
FIELD_SELECTORS = [
    'textarea[name*="question"]',
    'textarea[name*="answer"]',
    'textarea[name*="response"]',
    'textarea[placeholder*="why"]',
    'textarea[placeholder*="describe"]',
    'textarea[placeholder*="tell us"]',
    'textarea[placeholder*="explain"]',
    'textarea[aria-label*="question"]',
    'textarea[aria-label*="answer"]',
    'input[type="text"][name*="question"]',
    'input[type="text"][placeholder*="why"]',
    'input[type="text"][placeholder*="describe"]',
    'textarea[id*="question"]',
    'textarea[id*="screening"]',
    'textarea[id*="essay"]',
    'div[class*="question"] textarea',
    'div[class*="screening"] textarea',
    'div[class*="essay"] textarea',
]

_CONTAINER_HINTS = ("question", "field", "form-group")
_HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6, .question-text, .field-label"
_HELP_SELECTOR = ".help-text, .hint, .description, small"

_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

# Ids usable as-is after "#"; anything else (":r0:", "123", "q.2") is quoted
_PLAIN_IDENTIFIER = re.compile(r"^-?[A-Za-z_][A-Za-z0-9_-]*$")


def _css_string(value: str) -> str:
    """Escape a value for use inside a double-quoted CSS attribute selector."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


class HtmlFormAdapter(FieldAdapter):
    """FieldAdapter over a static HTML document parsed with BeautifulSoup.

    Field handles are CSS selectors. Values are written back into the parsed
    document, and every notification is appended to `events` as
    (selector, event) so callers can inspect what a browser would have seen.
    """

    def __init__(self, html: str, selectors: list[str] | None = None):
        self.soup = BeautifulSoup(html, "html.parser")
        self.selectors = selectors or FIELD_SELECTORS
        self.events: list[tuple[str, str]] = []

    @classmethod
    def from_url(cls, url: str, timeout: int = 15) -> "HtmlFormAdapter":
        """Fetch an application page and wrap its HTML."""
        resp = requests.get(url, headers={"User-Agent": _USER_AGENT}, timeout=timeout)
        resp.raise_for_status()
        return cls(resp.text)

    def html(self) -> str:
        return str(self.soup)

    # ── FieldAdapter ───────────────────────────────────────────────

    def list_fields(self) -> list[str]:
        selector = ", ".join(self.selectors)
        found: list[Tag] = []
        for form in self.soup.find_all("form"):
            found.extend(form.select(selector))
        # Fall back to fields outside any form
        if not found:
            found = self.soup.select(selector)

        locators: list[str] = []
        for element in found:
            locator = self._locator_for(element)
            if locator not in locators:
                locators.append(locator)
        return locators

    def read_context(self, field: str) -> FieldContext:
        element = self._resolve(field)
        label = self._find_label(element)
        label_text = label.get_text(strip=True) if label else ""

        heading_text = ""
        help_text = ""
        container = self._find_container(element)
        if container is not None:
            heading = container.select_one(_HEADING_SELECTOR)
            if heading is not None and heading is not label:
                heading_text = heading.get_text(strip=True)
            help_el = container.select_one(_HELP_SELECTOR)
            if help_el is not None:
                help_text = help_el.get_text(strip=True)

        container_classes: list[str] = []
        for parent in element.find_parents("div"):
            container_classes.extend(parent.get("class") or [])

        return FieldContext(
            locator=field,
            label=label_text,
            placeholder=element.get("placeholder", "") or "",
            heading=heading_text,
            help_text=help_text,
            name=element.get("name", "") or "",
            element_id=element.get("id", "") or "",
            class_name=" ".join(element.get("class") or []),
            required=element.has_attr("required"),
            aria_required=element.get("aria-required") == "true",
            container_classes=container_classes,
            max_length=self._max_length(element),
            value=self._read_value(element),
            form_index=self._form_index(element),
        )

    def set_value(self, field: str, text: str) -> None:
        element = self._resolve(field)
        if element.name == "textarea":
            element.string = text
        else:
            element["value"] = text

    def notify_changed(self, field: str, event: str) -> None:
        self._resolve(field)
        self.events.append((field, event))

    def value_of(self, field: str) -> str:
        return self._read_value(self._resolve(field))

    # ── Helpers ────────────────────────────────────────────────────

    def _resolve(self, locator: str) -> Tag:
        element = self.soup.select_one(locator) if locator else None
        if element is None:
            raise FieldNotFoundError(f"Field not found: {locator}")
        return element

    def _locator_for(self, element: Tag) -> str:
        element_id = element.get("id")
        if element_id:
            if _PLAIN_IDENTIFIER.match(element_id):
                return f"#{element_id}"
            return f'{element.name}[id="{_css_string(element_id)}"]'
        if element.get("name"):
            return f'{element.name}[name="{_css_string(element["name"])}"]'

        path: list[str] = []
        current: Tag | None = element
        while current is not None and current.name not in ("body", "[document]"):
            part = current.name
            classes = current.get("class") or []
            if classes:
                part += f".{classes[0]}"
            siblings = (
                current.parent.find_all(current.name, recursive=False)
                if current.parent is not None
                else []
            )
            if len(siblings) > 1:
                part += f":nth-of-type({siblings.index(current) + 1})"
            path.insert(0, part)
            current = current.parent
        return " > ".join(path)

    def _find_label(self, element: Tag) -> Tag | None:
        if element.get("id"):
            label = self.soup.find("label", attrs={"for": element["id"]})
            if label is not None:
                return label
        parent_label = element.find_parent("label")
        if parent_label is not None:
            return parent_label
        previous = element.find_previous_sibling()
        if previous is not None and previous.name == "label":
            return previous
        return None

    @staticmethod
    def _find_container(element: Tag) -> Tag | None:
        for parent in element.find_parents("div"):
            classes = " ".join(parent.get("class") or [])
            if any(hint in classes for hint in _CONTAINER_HINTS):
                return parent
        return None

    @staticmethod
    def _max_length(element: Tag) -> int | None:
        raw = element.get("maxlength")
        if raw is None:
            return None
        try:
            value = int(raw)
        except (TypeError, ValueError):
            logger.debug("Ignoring non-numeric maxlength %r", raw)
            return None
        return value if value > 0 else None

    @staticmethod
    def _read_value(element: Tag) -> str:
        if element.name == "textarea":
            return element.get_text()
        return element.get("value", "") or ""

    def _form_index(self, element: Tag) -> int | None:
        form = element.find_parent("form")
        if form is None:
            return None
        return self.soup.find_all("form").index(form)
