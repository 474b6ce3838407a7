"""
Apotek Alpro BPT Portal — outlet / HQ login and the marketing dashboard

Packages:
    api/        Portal routes and page templates
    agents/     External services (Google Sheets credential directory)
    core/       Auth, tabs, iframe loading, WhatsApp, settings, paths
"""
