"""Hotel PMS core: date-level inventory, availability, dynamic pricing and demand forecasting."""
