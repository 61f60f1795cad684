"""On-demand front-end bundle service.

Turns submitted component sources, a dependency manifest and a base/override
pair of style configurations into one published static page.
"""

__version__ = "0.1.0"
