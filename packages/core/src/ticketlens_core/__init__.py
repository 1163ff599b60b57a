"""ticketlens core: codec, scoring, estimates, reviews, reports and publishing."""
