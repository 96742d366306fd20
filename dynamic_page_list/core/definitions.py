"""The table of recognized directive parameters."""

from __future__ import annotations

from functools import lru_cache
from typing import List

from . import setters as s
from .categories import ComparisonKind
from .cleanup import LinkFlags
from .parameters import ParameterDefinition, ParameterRegistry
from .titles import NS_FILE, NS_TEMPLATE

P = ParameterDefinition

MODES = ("unordered", "ordered", "definition", "none", "inline", "category", "userformat")
HEADING_MODES = ("none", "unordered", "ordered", "definition", "H2", "H3", "H4")


def _selection_parameters() -> List[ParameterDefinition]:
    return [
        P("category", s.category("category", ComparisonKind.EQUALS), default=(),
          accumulates=True, allow_empty=True, open_references_conflict=True),
        P("categorymatch", s.category("category", ComparisonKind.LIKE), target="category",
          richness=3, accumulates=True, open_references_conflict=True),
        P("categoryregexp", s.category("category", ComparisonKind.REGEXP), target="category",
          richness=3, accumulates=True, open_references_conflict=True),
        P("notcategory", s.category("notcategory", ComparisonKind.EQUALS), default=(),
          accumulates=True, allow_empty=True, open_references_conflict=True),
        P("notcategorymatch", s.category("notcategory", ComparisonKind.LIKE),
          target="notcategory", richness=3, accumulates=True, open_references_conflict=True),
        P("notcategoryregexp", s.category("notcategory", ComparisonKind.REGEXP),
          target="notcategory", richness=3, accumulates=True, open_references_conflict=True),
        P("namespace", s.namespace_list("namespace"), default=(), accumulates=True,
          allow_empty=True, selection=True),
        P("notnamespace", s.namespace_list("notnamespace"), default=(), richness=1,
          accumulates=True),
        P("title", s.page("title"), richness=1, selection=True),
        P("titlematch", s.title_patterns("titlematch"), default=(), richness=2,
          accumulates=True, selection=True),
        P("nottitlematch", s.title_patterns("nottitlematch"), default=(), richness=3,
          accumulates=True, selection=True),
        P("titleregexp", s.title_patterns("titleregexp", separator=None), default=(),
          richness=3, accumulates=True, selection=True),
        P("nottitleregexp", s.title_patterns("nottitleregexp", separator=None), default=(),
          richness=3, accumulates=True, selection=True),
        P("titlelt", s.title_bound("titlelt"), richness=1),
        P("titlegt", s.title_bound("titlegt"), richness=1),
        P("linksto", s.page_groups("linksto"), default=(), richness=2, accumulates=True,
          selection=True, open_references_conflict=True),
        P("notlinksto", s.page_groups("notlinksto"), default=(), richness=2, accumulates=True,
          selection=True, open_references_conflict=True),
        P("linksfrom", s.page_groups("linksfrom"), default=(), richness=2, accumulates=True,
          selection=True),
        P("notlinksfrom", s.page_groups("notlinksfrom"), default=(), richness=2,
          accumulates=True, selection=True),
        P("uses", s.page_groups("uses", default_namespace=NS_TEMPLATE), default=(),
          richness=2, accumulates=True, selection=True, open_references_conflict=True),
        P("notuses", s.page_groups("notuses", default_namespace=NS_TEMPLATE), default=(),
          richness=2, accumulates=True, selection=True, open_references_conflict=True),
        P("usedby", s.page_groups("usedby"), default=(), richness=2, accumulates=True,
          selection=True, open_references_conflict=True),
        P("imageused", s.page_groups("imageused", default_namespace=NS_FILE), default=(),
          richness=2, accumulates=True, selection=True, open_references_conflict=True),
        P("imagecontainer", s.page_groups("imagecontainer"), default=(), richness=2,
          accumulates=True, selection=True),
    ]


def _author_and_revision_parameters() -> List[ParameterDefinition]:
    definitions = [
        P(name, s.user(name), richness=2, selection=True, open_references_conflict=True)
        for name in (
            "createdby",
            "notcreatedby",
            "modifiedby",
            "notmodifiedby",
            "lastmodifiedby",
            "notlastmodifiedby",
        )
    ]
    definitions += [
        P(name, s.timestamp(name), richness=3, selection=True, open_references_conflict=True)
        for name in (
            "allrevisionsbefore",
            "allrevisionssince",
            "firstrevisionsince",
            "lastrevisionbefore",
        )
    ]
    definitions += [
        P("minrevisions", s.integer("minrevisions", minimum=0), richness=3,
          open_references_conflict=True),
        P("maxrevisions", s.integer("maxrevisions", minimum=0), richness=3,
          open_references_conflict=True),
        P("minoredits", s.choice("minoredits", ("include", "exclude")), richness=2,
          open_references_conflict=True),
        P("redirects", s.choice("redirects", ("include", "exclude", "only")),
          default="exclude"),
    ]
    return definitions


def _ordering_and_limit_parameters() -> List[ParameterDefinition]:
    return [
        P("distinct", s.boolean("distinct"), default=True, richness=1, priority=1),
        P("openreferences", s.boolean("openreferences"), default=False, richness=3,
          priority=2),
        P("ignorecase", s.boolean("ignorecase"), default=False, richness=2, priority=2),
        P("goal", s.choice("goal", ("pages", "categories")), default="pages", richness=3,
          priority=3),
        P("ordercollation", s.text("ordercollation"), richness=1, priority=4),
        P("ordermethod", s.order_methods("ordermethod"), default=("title",), priority=5),
        P("include", s.section_labels("seclabels"), target="seclabels", richness=2, priority=6,
          aliases=("includepage",)),
        P("order", s.choice("order", ("ascending", "descending")), default="ascending"),
        P("count", s.result_count("count")),
        P("offset", s.integer("offset", minimum=0), default=0, richness=1),
        P("randomcount", s.integer("randomcount", minimum=0), default=0, richness=1),
        P("skipthispage", s.boolean("skipthispage"), default=True, richness=2),
        P("includesubpages", s.boolean("includesubpages"), default=True, richness=2),
        P("ordersuitsymbols", s.boolean("ordersuitsymbols"), default=False, richness=1),
    ]


def _output_parameters() -> List[ParameterDefinition]:
    definitions = [
        P("mode", s.choice("mode", MODES), default="unordered"),
        P("headingmode", s.choice("headingmode", HEADING_MODES), default="none", richness=2),
        P("headingcount", s.boolean("headingcount"), default=False, richness=2),
        P("inlinetext", s.text("inlinetext"), default=" - ", richness=1),
        P("listattr", s.text("listattr"), richness=1),
        P("itemattr", s.text("itemattr"), richness=1),
        P("listseparators", s.text_list("listseparators"), richness=1, aliases=("format",)),
        P("secseparators", s.text_list("secseparators"), richness=2),
        P("multisecseparators", s.text_list("multisecseparators"), richness=2),
        P("tablerow", s.text_list("tablerow"), richness=2),
        P("dominantsection", s.integer("dominantsection", minimum=1), richness=2),
        P("shownamespace", s.boolean("shownamespace"), default=True),
        P("escapelinks", s.boolean("escapelinks"), default=True, richness=1),
        P("titlemaxlen", s.integer("titlemaxlen", minimum=1), richness=1),
        P("columns", s.integer("columns", minimum=1), richness=1),
        P("allowcachedresults", s.boolean("allowcachedresults"), default=False, richness=1),
        P("cacheperiod", s.integer("cacheperiod", minimum=0), richness=1),
        P("execandexit", s.text("execandexit"), richness=1),
        P("debug", s.integer("debug", minimum=0, maximum=5), richness=1),
        P("reset", s.link_flags("reset"), default=LinkFlags(), richness=2),
        P("eliminate", s.link_flags("eliminate"), default=LinkFlags(), richness=2),
    ]
    for variant in ("results", "oneresult", "noresults"):
        for part in ("header", "footer"):
            name = f"{variant}{part}"
            definitions.append(P(name, s.text(name), richness=1))
    definitions.append(
        P("addfirstcategorydate", s.boolean("addfirstcategorydate"), default=False,
          open_references_conflict=True)
    )
    definitions += [
        P(name, s.boolean(name), default=False, richness=2, open_references_conflict=True)
        for name in (
            "addpagetoucheddate",
            "addeditdate",
            "adduser",
            "addauthor",
            "addcontribution",
            "addlasteditor",
            "addcategories",
            "addpagecounter",
            "addpagesize",
        )
    ]
    return definitions


def parameter_definitions() -> List[ParameterDefinition]:
    """All recognized parameter definitions."""

    return (
        _selection_parameters()
        + _author_and_revision_parameters()
        + _ordering_and_limit_parameters()
        + _output_parameters()
    )


@lru_cache(maxsize=1)
def default_registry() -> ParameterRegistry:
    """Registry of every recognized parameter, built once per process."""

    return ParameterRegistry(parameter_definitions())
