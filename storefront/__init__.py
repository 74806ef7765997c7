"""Storefront API server"""
