"""Data models for per-site reader mode recipes."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass
class AttributeRewrite:
    """
    Structural fixup applied to a page before content extraction.

    Matched elements are relabeled to ``element_name``. When ``attribute``
    is set, the value of the source attribute is copied to the destination
    attribute on the relabeled element.
    """
    selector: str
    attribute: Optional[Tuple[str, str]] = None  # (source, destination)
    element_name: str = ""


@dataclass
class RewriteRuleSet:
    """
    Declarative content-extraction recipe for one site.

    Selector lists are ordered; earlier entries take priority over later
    ones when the rewriting engine picks the article body.
    """
    main_content: List[str] = field(default_factory=list)
    main_content_cleanup: List[str] = field(default_factory=list)
    preprocess: List[AttributeRewrite] = field(default_factory=list)
    delazify: bool = False
    fix_embeds: bool = False
    content_script: Optional[str] = None


@dataclass
class Configuration:
    """
    Recipe registered for a single domain.

    ``url_rules`` are adblock-style filter patterns deciding whether a
    concrete page URL on the domain is eligible. A missing
    ``declarative_rewrite`` means URL matching only.
    """
    domain: str
    url_rules: List[str] = field(default_factory=list)
    declarative_rewrite: Optional[RewriteRuleSet] = None
