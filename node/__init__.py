"""node/ -- Node identity lifecycle and the provisioning gateway client.

Layer rule: node/ may import from core/, auth/, and vault/. It does NOT
import from api/. The api/ layer drives node/ through NodeIdentityLifecycle.
"""
