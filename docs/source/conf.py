"""Sphinx configuration for Subsidy Allocation documentation."""

import os
import sys

sys.path.insert(0, os.path.abspath("../.."))

project = "Subsidy Allocation"
author = "Subsidy Allocation contributors"
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.mathjax",
    "myst_parser",
]

source_suffix = {
    ".rst": "restructuredtext",
    ".md": "markdown",
}
templates_path = ["_templates"]
exclude_patterns = ["build"]
html_theme = "sphinx_rtd_theme"
html_theme_options = {
    "navigation_depth": 2,
}
html_static_path = ["_static"]

autodoc_member_order = "bysource"
napoleon_numpy_docstring = True
napoleon_google_docstring = False


def setup(app):
    """Register custom static files with Sphinx."""
    app.add_css_file("custom.css")
