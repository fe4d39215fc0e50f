"""Terminal events, key decoding, colors, borders, windows and the light renderer."""