"""Portal core: auth, tab switching, iframe loading, WhatsApp hand-off, config."""
