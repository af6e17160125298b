"""Pure business rules of the fleet ledger.

Billing periods, allocation order, rental activity and reminder triggers.
Nothing here touches the database or the clock: every date-sensitive
function takes ``as_of`` explicitly.
"""
