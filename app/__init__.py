"""
FastAPI Application Package

Contains the FastAPI application exposing the exchange adapters' canonical
market and account data over HTTP.
"""
