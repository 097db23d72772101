"""
Reverse proxy: the stack's single ingress.

Routes ``/api`` and everything below it to the API service and every
other path to the front-end service.

Usage::

    from tutorial_stack.proxy import create_proxy_app
    app = create_proxy_app()
"""

from tutorial_stack.proxy.app import ReverseProxy, create_proxy_app
from tutorial_stack.proxy.routing import Route, RouteTable
from tutorial_stack.proxy.settings import ProxySettings

__all__ = ["ProxySettings", "Route", "RouteTable", "ReverseProxy", "create_proxy_app"]
