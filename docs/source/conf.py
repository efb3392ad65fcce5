# Sphinx configuration for the perk documentation.

import importlib.metadata

# -- Project information -----------------------------------------------------

_metadata = importlib.metadata.metadata("perk")
project = _metadata["Name"]
author = (
    _metadata["Author-email"].split(" <")[0]
    if "Author-email" in _metadata
    else "perk developers"
)
copyright = "2026, " + author
release = _metadata["Version"]

# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.autosummary",
    "sphinx.ext.napoleon",
    "sphinx.ext.intersphinx",
    "sphinx.ext.mathjax",
    "myst_parser",
]

templates_path = ["_templates"]

# -- Options for HTML output ------------------------------------------------

html_theme = "furo"

# -- Extension configuration -------------------------------------------------

# Docstrings are numpy style throughout
napoleon_google_docstring = False
napoleon_numpy_docstring = True

myst_enable_extensions = ["colon_fence", "deflist"]
source_suffix = {
    ".rst": "restructuredtext",
    ".md": "markdown",
}

autodoc_default_options = {
    "members": True,
    "show-inheritance": True,
}
autodoc_member_order = "bysource"
autosummary_generate = True

intersphinx_mapping = {
    "python": ("https://docs.python.org/3/", None),
    "numpy": ("https://numpy.org/doc/stable/", None),
    "scipy": ("https://docs.scipy.org/doc/scipy/", None),
}
