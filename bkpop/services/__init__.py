"""Service helpers: price formatting and Supabase repositories."""
