"""Trade interceptor package.

Opens Path of Exile 2 trade search pages in isolated headless browser
sessions and extracts the search submission and result listings the page
requests from the trade API.
"""

__version__ = "1.0.0"
