"""
FinSight HTTP API
"""
