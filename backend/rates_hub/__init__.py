"""
Rates Hub.

Real-time exchange-rate notifications over WebSocket. Clients connect and
receive a RATES_UPDATE event every time new rates are posted to the HTTP API.
"""

__version__ = "1.0.0"
