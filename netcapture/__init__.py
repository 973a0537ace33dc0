"""netcapture: observe the network requests a web page makes.

Loads a target page in a controlled Chromium instance, optionally disguised
as a regular browser, and reports the requests it issued.
"""

__version__ = "1.0.0"
