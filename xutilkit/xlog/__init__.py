"""Levelled logger writing in the background to console and rotating file writers."""