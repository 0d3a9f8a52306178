"""
Notifications Package
=====================

Outbound WhatsApp notifications for the bimbingan workflow.

Contents
--------
- whatsapp
    Message templates, phone normalization and the `WhatsAppNotifier`
    transport (Fonnte or Meta Cloud API over httpx).
- dispatcher
    `NotificationDispatcher`, a thread-pool backed fire-and-forget queue used
    after a workflow transaction commits.
"""
