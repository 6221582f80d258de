"""
AI package - model transport, structured output extraction, generation
stages and the documentation pipeline.
"""
