"""Domain events, outbox dispatch and integration publishing"""
