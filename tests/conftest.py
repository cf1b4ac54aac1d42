"""Shared fixtures for papertex tests."""

import pytest
from loguru import logger

from papertex.contexts.document.ast import Node, text
from tests.builders import figure, paragraph, raw_tex


@pytest.fixture
def log_messages():
    """Collect loguru messages (WARNING and above) emitted during a test."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="WARNING")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def article_tree():
    """Article with every extractable block, a placed figure and a bibliography cite."""
    return Node(
        "article",
        children=[
            Node("latex:preamble", value="\\usepackage{xcolor}"),
            Node("abstract", children=[paragraph("We study things.")]),
            figure("teaser1", "Overview", classes=["teaser"]),
            Node("h1", {"id": "intro"}, children=[text("Introduction")]),
            Node(
                "p",
                children=[
                    text("As shown in "),
                    Node("cross-ref", {"xref": "figA"}),
                    text(", see "),
                    Node("cite-ref", {"key": "knuth84"}),
                    text("."),
                ],
            ),
            figure("figA", "Results"),
            raw_tex("\\place{figA}"),
            Node("acknowledgments", children=[paragraph("Thanks to all.")]),
        ],
    )
