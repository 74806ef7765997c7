# Payment gateway HTTP client

from .client import RazorpayClient
from .models import GatewayOrder, GatewayRefund

__all__ = ["RazorpayClient", "GatewayOrder", "GatewayRefund"]
