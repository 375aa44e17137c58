# No tables of its own: billing columns live on families
# This file documents the expected database schema
# Checkout sessions are created by the create-checkout-session edge function

"""
Columns on families written by the payment webhook (not by this service):

families:
- plan_tier: text (not null, default: 'free') - values: free, basic, plus, pro, internal
- billing_status: text (nullable) - provider subscription status
- billing_customer_id: text (nullable) - provider customer reference
- current_period_end: timestamp with time zone (nullable)
"""
