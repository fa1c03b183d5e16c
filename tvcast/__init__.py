"""
tvcast: núcleo de reprodução dos canais (agenda, playlist HLS, contador de
espectadores e proxy de fontes).
"""
