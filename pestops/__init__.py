"""Pest Ops Workforce Analytics"""
