"""Portal routes (Blueprint "portal") and HTML templates."""
