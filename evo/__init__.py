"""Controllers, fitness and population evaluation for evolved vehicle networks."""
