"""
Workflow Package
================

Domain rules of the bimbingan workflow, free of persistence concerns:

- status: submission status machine
- progress: thesis progress ladder (BAB I .. BAB V, Selesai)
- principal: authenticated caller, roles and advisor slots
- documents: uploaded document references and PDF checks
- errors: error kinds surfaced to the API layer
"""
