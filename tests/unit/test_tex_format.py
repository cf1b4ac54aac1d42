"""
Unit tests for the LaTeX text formatter.

Tests escaping, inline/block commands, style classes, labels, spacing and
cross-references in papertex.contexts.templating.tex_format.
"""

import pytest

from papertex.contexts.document.ast import Node, text
from papertex.contexts.templating.places import resolve_places
from papertex.contexts.templating.tex_format import (
    ESCAPES,
    TexFormatConfig,
    TexFormatter,
    escape,
    index_labels,
    unescape,
)
from tests.builders import figure, paragraph, raw_tex


@pytest.fixture
def formatter():
    return TexFormatter(TexFormatConfig.create())


class TestEscaping:
    """Tests for string(), bibtex() and the escape/unescape pair."""

    @pytest.mark.unit
    def test_escapes_special_characters(self, formatter):
        assert formatter.string("50% of $x_1 & {y} #2") == r"50\% of \$x\_1 \& \{y\} \#2"

    @pytest.mark.unit
    def test_backslash_tilde_caret(self, formatter):
        assert formatter.string("a\\b~c^d") == r"a\textbackslash{}b\textasciitilde{}c\textasciicircum{}d"

    @pytest.mark.unit
    def test_round_trip_every_special_character(self):
        original = "".join(ESCAPES) + " plain text \\{already} ~^ end"
        assert unescape(escape(original)) == original

    @pytest.mark.unit
    @pytest.mark.parametrize("char", list(ESCAPES))
    def test_round_trip_single_character(self, char):
        assert unescape(escape(char)) == char
        assert escape(char) != char

    @pytest.mark.unit
    def test_bibtex_keeps_entry_syntax(self, formatter):
        entry = "@article{k, title={R&D at 100%}, note={\\& done}}"
        assert formatter.bibtex(entry) == "@article{k, title={R\\&D at 100\\%}, note={\\& done}}"


class TestTex:
    """Tests for tex() dispatch over scalars and nodes."""

    @pytest.mark.unit
    def test_none_renders_empty(self, formatter):
        assert formatter.tex(None) == ""
        assert (formatter.tex(None) or "fallback") == "fallback"

    @pytest.mark.unit
    def test_scalars_are_escaped(self, formatter):
        assert formatter.tex("a_b") == r"a\_b"
        assert formatter.tex(42) == "42"

    @pytest.mark.unit
    def test_paragraph_with_emphasis(self, formatter):
        node = Node("p", children=[text("Hello "), Node("em", children=[text("world")])])
        assert formatter.tex(node) == "Hello \\emph{world}\n\n"

    @pytest.mark.unit
    def test_empty_paragraph_renders_nothing(self, formatter):
        assert formatter.tex(Node("p", children=[text("   ")])) == ""

    @pytest.mark.unit
    def test_heading_with_label(self, formatter):
        node = Node("h1", {"id": "intro"}, children=[text("Intro")])
        assert formatter.tex(node) == "\n\\section{Intro}\\label{sec:intro}\n\n"

    @pytest.mark.unit
    def test_unnumbered_heading(self, formatter):
        node = Node("h2", classes=["nonumber"], children=[text("Notes")])
        assert formatter.tex(node) == "\n\\subsection*{Notes}\n\n"

    @pytest.mark.unit
    def test_unknown_node_renders_children(self, formatter):
        node = Node("section", children=[paragraph("Body")])
        assert formatter.tex(node) == "Body\n\n"

    @pytest.mark.unit
    def test_list(self, formatter):
        node = Node("ul", children=[Node("li", children=[text("one")]), Node("li", children=[text("two")])])
        assert formatter.tex(node) == "\\begin{itemize}\n\\item one\n\\item two\n\\end{itemize}\n\n"

    @pytest.mark.unit
    def test_math_is_not_escaped(self, formatter):
        assert formatter.tex(Node("math", value="x_1^2")) == "$x_1^2$"

    @pytest.mark.unit
    def test_equation_label(self, formatter):
        node = Node("equation", {"id": "euler"}, value="e^{i\\pi} + 1 = 0")
        assert formatter.tex(node) == (
            "\\begin{equation}\ne^{i\\pi} + 1 = 0\n\\label{eqn:euler}\\end{equation}\n"
        )

    @pytest.mark.unit
    def test_link(self, formatter):
        node = Node("link", {"href": "https://example.com/a%20b"}, children=[text("site")])
        assert formatter.tex(node) == "\\href{https://example.com/a\\%20b}{site}"

    @pytest.mark.unit
    def test_tabular_header_row(self, formatter):
        node = Node(
            "tabular",
            children=[
                Node("tr", children=[Node("th", children=[text("A")]), Node("th", children=[text("B")])]),
                Node("tr", children=[Node("td", children=[text("1")]), Node("td", children=[text("2")])]),
            ],
        )
        assert formatter.tex(node) == (
            "\\begin{tabular}{ll}\n\\textbf{A} & \\textbf{B} \\\\\n\\hline\n1 & 2 \\\\\n\\end{tabular}\n"
        )

    @pytest.mark.unit
    def test_figure_environment(self, formatter):
        assert formatter.tex(figure("f1", "Cap")) == (
            "\\begin{figure}[tbp]\n"
            "\\centering\n"
            "\\includegraphics[width=\\linewidth]{f1.png}\n\\caption{Cap}\n"
            "\\label{fig:f1}\n"
            "\\end{figure}\n\n"
        )

    @pytest.mark.unit
    def test_page_width_figure(self, formatter):
        output = formatter.tex(figure("wide", "Wide", classes=["page"]))
        assert output.startswith("\\begin{figure*}[tbp]")
        assert "\\end{figure*}" in output

    @pytest.mark.unit
    def test_top_level_blocks_are_not_in_body(self, formatter):
        root = Node(
            "article",
            children=[
                Node("abstract", children=[paragraph("Summary")]),
                Node("acknowledgments", children=[paragraph("Thanks")]),
                Node("latex:preamble", value="\\usepackage{x}"),
                figure("t", "Teaser", classes=["teaser"]),
                paragraph("Body"),
            ],
        )
        assert formatter.body(root) == "Body\n\n"

    @pytest.mark.unit
    def test_nested_blocks_render_as_content(self, formatter):
        root = Node(
            "article",
            children=[
                Node(
                    "section",
                    children=[
                        Node("acknowledgments", children=[paragraph("Thanks nested.")]),
                        figure("t2", "Nested teaser", classes=["teaser"]),
                    ],
                ),
            ],
        )

        output = formatter.body(root)

        assert "Thanks nested." in output
        assert "\\begin{figure}[tbp]" in output
        assert "\\caption{Nested teaser}" in output
        assert "\\label{fig:t2}" in output

    @pytest.mark.unit
    def test_nested_preamble_is_reported(self, formatter, log_messages):
        root = Node("article", children=[Node("section", children=[Node("latex:preamble", value="\\usepackage{x}")])])

        assert formatter.body(root) == ""
        assert any("latex:preamble" in m for m in log_messages)


class TestRaw:
    """Tests for raw markup nodes."""

    @pytest.mark.unit
    def test_tex_raw_passes_through(self, formatter):
        assert formatter.tex(raw_tex("\\newpage")) == "\\newpage"

    @pytest.mark.unit
    def test_other_formats_are_dropped(self, formatter):
        assert formatter.tex(Node("raw", {"format": "html"}, value="<b>x</b>")) == ""


class TestStyleClasses:
    """Tests for span style class mapping."""

    @pytest.mark.unit
    @pytest.mark.parametrize("class_name", ["bold", "strong", "demi"])
    def test_bold_aliases(self, formatter, class_name):
        node = Node("span", classes=[class_name], children=[text("x")])
        assert formatter.tex(node) == "\\textbf{x}"

    @pytest.mark.unit
    def test_unknown_classes_dropped(self, formatter):
        node = Node("span", classes=["sparkle", "italic"], children=[text("x")])
        assert formatter.tex(node) == "\\textit{x}"

    @pytest.mark.unit
    def test_classes_nest_in_order(self, formatter):
        node = Node("span", classes=["italic", "smallcaps"], children=[text("x")])
        assert formatter.tex(node) == "\\textsc{\\textit{x}}"


class TestHelpers:
    """Tests for vspace(), label() and fragment()."""

    @pytest.mark.unit
    def test_vspace_length_and_command(self):
        formatter = TexFormatter(
            TexFormatConfig.create(vspace={"abstract": "-4pt", "figure": "\\vspace{-2pt}"})
        )
        assert formatter.vspace(Node("abstract")) == "\\vspace{-4pt}\n"
        assert formatter.vspace(Node("figure")) == "\\vspace{-2pt}\n"
        assert formatter.vspace(Node("p")) == ""

    @pytest.mark.unit
    def test_vspace_before_element_content(self):
        formatter = TexFormatter(TexFormatConfig.create(vspace={"h1": "-3pt"}))
        node = Node("h1", children=[text("Intro")])
        assert formatter.tex(node) == "\\vspace{-3pt}\n\n\\section{Intro}\n\n"

    @pytest.mark.unit
    def test_label(self, formatter):
        assert formatter.label(Node("figure", {"id": "f1"}), "fig") == "\\label{fig:f1}"
        assert formatter.label(Node("figure"), "fig") == ""

    @pytest.mark.unit
    def test_fragment_renders_children_only(self, formatter):
        node = Node("quote", children=[text("inner")])
        assert formatter.fragment(node) == "inner"

    @pytest.mark.unit
    def test_config_is_immutable(self):
        config = TexFormatConfig.create()
        with pytest.raises(TypeError):
            config.prefix["fig"] = "Fig. "


class TestReferences:
    """Tests for cross-references and citations."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "category, expected",
        [
            ("fig", "Figure~\\ref{fig:a}"),
            ("tbl", "Table~\\ref{tbl:a}"),
            ("eqn", "Equation~\\ref{eqn:a}"),
            ("sec", "\\S\\ref{sec:a}"),
        ],
    )
    def test_crossref_prefix(self, formatter, category, expected):
        assert formatter.tex(Node("cross-ref", {"xref": "a", "type": category})) == expected

    @pytest.mark.unit
    def test_untyped_crossref_matches_emitted_label(self):
        root = Node(
            "article",
            children=[
                Node("h1", {"id": "intro"}, children=[text("Intro")]),
                figure("figB", "Free"),
                Node("equation", {"id": "euler"}, value="e^{i\\pi} = -1"),
                Node(
                    "p",
                    children=[
                        Node("cross-ref", {"xref": "intro"}),
                        Node("cross-ref", {"xref": "figB"}),
                        Node("crossref", {"xref": "euler"}),
                    ],
                ),
            ],
        )
        formatter = TexFormatter(TexFormatConfig.create(labels=index_labels(root)))

        output = formatter.body(root)

        assert "\\label{sec:intro}" in output
        assert "\\label{fig:figB}" in output
        assert "\\label{eqn:euler}" in output
        assert "\\S\\ref{sec:intro}Figure~\\ref{fig:figB}Equation~\\ref{eqn:euler}" in output

    @pytest.mark.unit
    def test_crossref_to_unknown_target(self, formatter):
        assert formatter.tex(Node("crossref", {"xref": "a"})) == "\\ref{a}"

    @pytest.mark.unit
    def test_index_labels(self):
        root = Node(
            "article",
            children=[
                Node("h2", {"id": "s"}),
                Node("table", {"id": "t"}),
                Node("p", {"id": "plain"}),
                Node("figure", {"id": "s"}),
            ],
        )
        assert index_labels(root) == {"s": "sec", "t": "tbl"}

    @pytest.mark.unit
    def test_crossref_resolves_through_place_map(self):
        root = Node("article", children=[raw_tex("\\place{figA}"), figure("figA", "Cap")])
        formatter = TexFormatter(TexFormatConfig.create(places=resolve_places(root)))
        assert formatter.tex(Node("cross-ref", {"xref": "figA"})) == "Figure~\\ref{fig:figA}"

    @pytest.mark.unit
    def test_cite_list(self, formatter):
        node = Node(
            "cite-list",
            children=[Node("cite-ref", {"key": "a"}), Node("cite-ref", {"key": "b"})],
        )
        assert formatter.tex(node) == "\\cite{a,b}"

    @pytest.mark.unit
    def test_unknown_citation_key_warns(self, log_messages):
        formatter = TexFormatter(TexFormatConfig.create(references=["known"]))
        assert formatter.tex(Node("cite-ref", {"key": "missing"})) == "\\cite{missing}"
        assert any("missing" in m for m in log_messages)


class TestPlacement:
    """A claimed figure renders only at its place directive."""

    @pytest.mark.unit
    def test_claimed_figure_moves_to_directive(self):
        root = Node(
            "article",
            children=[
                figure("figA", "Claimed"),
                paragraph("Before the place."),
                raw_tex("\\place{figA}"),
            ],
        )
        formatter = TexFormatter(TexFormatConfig.create(places=resolve_places(root)))
        output = formatter.tex(root)

        assert output.count("\\begin{figure}") == 1
        assert output.index("Before the place.") < output.index("\\begin{figure}")
        assert "\\label{fig:figA}" in output

    @pytest.mark.unit
    def test_unclaimed_figure_stays_in_place(self):
        root = Node("article", children=[figure("figB", "Free"), raw_tex("\\place{figA}")])
        formatter = TexFormatter(TexFormatConfig.create(places=resolve_places(root)))
        output = formatter.tex(root)

        assert output.count("\\begin{figure}") == 1
        assert "\\label{fig:figB}" in output

    @pytest.mark.unit
    def test_directive_without_figure_renders_nothing(self, log_messages):
        root = Node("article", children=[raw_tex("\\place{ghost}")])
        formatter = TexFormatter(TexFormatConfig.create(places=resolve_places(root)))
        assert formatter.tex(root) == ""
        assert any("ghost" in m for m in log_messages)

    @pytest.mark.unit
    def test_markup_after_directive_is_kept(self):
        root = Node("article", children=[figure("figA", "Cap"), raw_tex("\\place{figA}\\vspace{-1em}")])
        formatter = TexFormatter(TexFormatConfig.create(places=resolve_places(root)))

        output = formatter.tex(root)

        assert output.endswith("\\end{figure}\n\n\\vspace{-1em}")
        assert output.count("\\begin{figure}") == 1
