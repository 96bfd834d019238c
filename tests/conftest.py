# -*- coding: utf-8 -*-
"""
Shared fixtures: small synthetic Stark exports built inline.
"""

import os
import sys

import pytest

# Make the package importable without installation
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))


def issue_table(headers, rows):
    """HTML for a <table> with a <thead> header row and one <tbody>."""
    head = "".join(f"<th>{h}</th>" for h in headers)
    body = "".join("<tr>" + "".join(f"<td>{c}</td>" for c in row) + "</tr>" for row in rows)
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def wrap_document(body):
    return f"<!DOCTYPE html><html><head><title>Stark report</title></head><body>{body}</body></html>"


def wcag_criterion(label, content="", failures=None, potentials=None):
    """A Stark disclosure <li> for one WCAG criterion with optional badges."""
    badges = ""
    if failures is not None:
        badges += f'<div><div>{failures}</div><svg aria-label="Failures"></svg></div>'
    if potentials is not None:
        badges += f'<div><div>{potentials}</div><svg aria-label="Potentials"></svg></div>'
    return f"<li><button><div>{label}</div>{badges}</button>{content}</li>"


def violation_card(message, instances=None, snippets=(), potential=False):
    """A category card whose aria-label carries the message and instance count."""
    prefix = "Potential Violation" if potential else "Violation"
    count = f" ({instances} instances)" if instances is not None else ""
    codes = "".join(f"<li><code>{s}</code></li>" for s in snippets)
    instance_list = f'<ul aria-label="Instances">{codes}</ul>' if snippets else ""
    return (
        f'<div aria-label="{prefix}. {message}{count}">'
        f'<div class="col-[title]">{message}</div>{instance_list}</div>'
    )


@pytest.fixture
def table_report():
    return wrap_document(issue_table(
        ["Severity", "Issue", "Description", "WCAG", "Occurrences", "Page"],
        [
            ["Serious", "Low contrast text", "Text does not meet 4.5:1", "1.4.3", "12", "https://example.com/"],
            ["Minor", "Empty link", "Link has no discernible text", "2.4.4", "2", "https://example.com/about"],
        ],
    ))


@pytest.fixture
def hml_table_report():
    return wrap_document(issue_table(
        ["Impact", "Title", "Details"],
        [
            ["High", "Missing form label", "Input has no accessible label"],
            ["Low", "Heading order", "Heading levels skip from h1 to h3"],
        ],
    ))


@pytest.fixture
def card_report():
    cards = violation_card(
        "Image is missing alt text",
        instances=5,
        snippets=['&lt;img src="a.png"&gt;', '&lt;img src="b.png"&gt;', '&lt;span class="icon"&gt;'],
    )
    criterion = wcag_criterion("1.1.1 Non-text Content", content=cards, failures=5)
    return wrap_document(f"<p>https://shop.example.com/checkout</p><ul>{criterion}</ul>")
